import streamlit as st
from typing import Dict, Any
from utils.api_client import api_client


def init_session_state():
    """Initialize session state variables."""
    if "authenticated" not in st.session_state:
        st.session_state.authenticated = False
    if "access_token" not in st.session_state:
        st.session_state.access_token = None
    if "token_expires_at" not in st.session_state:
        st.session_state.token_expires_at = None

    # Streamlit reruns the script; keep the client in sync with the session
    if st.session_state.access_token:
        api_client.set_auth_token(st.session_state.access_token)
    else:
        api_client.clear_auth_token()


def login(password: str) -> bool:
    """Attempt to open an admin session with the shared password."""
    response = api_client.login(password)

    if response["success"]:
        data = response["data"]
        st.session_state.authenticated = True
        st.session_state.access_token = data["access_token"]
        st.session_state.token_expires_at = data.get("expires_at")

        # Set token in API client
        api_client.set_auth_token(data["access_token"])
        return True
    else:
        st.error(f"Login failed: {response['error']}")
        return False


def clear_session():
    st.session_state.authenticated = False
    st.session_state.access_token = None
    st.session_state.token_expires_at = None
    api_client.clear_auth_token()


def logout():
    """Revoke the admin session and forget the token."""
    if st.session_state.access_token:
        api_client.logout()
    clear_session()


def require_auth():
    """Stop the page with a login form unless an admin is logged in."""
    if not st.session_state.authenticated:
        show_login_form()
        st.stop()


def show_login_form():
    """Display the admin login form."""
    st.subheader("🔐 Admin Login")

    with st.form("login_form"):
        password = st.text_input("Password", type="password", placeholder="Enter the admin password")
        submit = st.form_submit_button("Login", type="primary")

        if submit:
            if password:
                if login(password):
                    st.success("Login successful!")
                    st.rerun()
            else:
                st.error("Please enter the admin password.")


def check_api_response(response: Dict[str, Any]) -> bool:
    """Check API response and handle authentication errors."""
    if not response["success"]:
        if response.get("status_code") == 401:
            clear_session()
            st.error("Session expired. Please log in again.")
            st.rerun()
        else:
            st.error(f"API Error: {response['error']}")

    return response["success"]
