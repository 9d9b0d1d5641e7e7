import streamlit as st
from datetime import date
from utils.auth import init_session_state
from utils.api_client import api_client
from utils.formatting import (
    LOCATION_LABELS,
    GENDER_LABELS,
    card_image,
    format_date_range,
    format_price,
    format_spots,
    gender_label,
    location_label,
)
from config import PAGE_TITLE, PAGE_ICON, LAYOUT, CARDS_PER_ROW, PRICE_COLOR

DETAILS_PAGE = "pages/1_🧳_Trip_Details.py"

# Page configuration
st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon=PAGE_ICON,
    layout=LAYOUT,
    initial_sidebar_state="expanded"
)

# Initialize session state
init_session_state()

# Custom CSS for better styling
st.markdown(f"""
<style>
    .main-header {{
        text-align: center;
        padding: 1.5rem 0;
        font-size: 2.6rem;
        font-weight: bold;
    }}

    .trip-badge {{
        display: inline-block;
        font-size: 0.75rem;
        padding: 0.15rem 0.6rem;
        margin: 0 0.3rem 0.3rem 0;
        background: #f1f3f5;
        border-radius: 999px;
    }}

    .trip-price {{
        color: {PRICE_COLOR};
        font-weight: 600;
    }}
</style>
""", unsafe_allow_html=True)


def open_trip(trip_id: int):
    """Go to the detail page of a trip."""
    st.session_state.selected_trip_id = trip_id
    st.query_params["trip_id"] = str(trip_id)
    st.switch_page(DETAILS_PAGE)


def show_trip_card(trip):
    """Render one trip card."""
    with st.container(border=True):
        st.image(card_image(trip), use_container_width=True)

        header_col, link_col = st.columns([5, 1])
        with header_col:
            st.markdown(f"#### {trip['name']}")
        with link_col:
            if trip.get("websiteUrl"):
                st.link_button("🔗", trip["websiteUrl"], help="Visit website")

        st.caption(format_date_range(trip["startDate"], trip["endDate"]))

        price = format_price(trip.get("price"))
        if price:
            st.markdown(f'<div class="trip-price">{price}</div>', unsafe_allow_html=True)

        badges = [location_label(trip.get("location")), gender_label(trip.get("gender"))]
        spots = format_spots(trip.get("spots"))
        if spots:
            badges.append(spots)
        if trip.get("isInternship"):
            badges.append("Internship")
        st.markdown(
            "".join(f'<span class="trip-badge">{badge}</span>' for badge in badges),
            unsafe_allow_html=True
        )

        if st.button("View Details", key=f"view_{trip['tripId']}", use_container_width=True):
            open_trip(trip["tripId"])


# Sidebar filters
with st.sidebar:
    st.header("🔎 Filters")

    location_options = ["all"] + list(LOCATION_LABELS)
    location = st.selectbox(
        "Destination",
        location_options,
        format_func=lambda value: "All destinations" if value == "all" else LOCATION_LABELS[value]
    )

    gender_options = ["all"] + list(GENDER_LABELS)
    gender = st.selectbox(
        "Group",
        gender_options,
        format_func=lambda value: "Everyone" if value == "all" else GENDER_LABELS[value]
    )

    trip_type = st.radio("Type", ["All", "Trips", "Internships"], horizontal=True)

    upcoming_only = st.checkbox("Upcoming only", value=True)
    start_from = st.date_input("Starting from", value=date.today(), disabled=not upcoming_only)

    if st.button("🔄 Refresh", use_container_width=True):
        st.rerun()

    st.markdown("---")
    health_response = api_client.get_health()
    if health_response.get("success"):
        st.success("🟢 API Online")
    else:
        st.error("🔴 API Offline")

# Main content
st.markdown(f'<h1 class="main-header">{PAGE_ICON} Upcoming Trips</h1>', unsafe_allow_html=True)

filters = {
    "location": None if location == "all" else location,
    "gender": None if gender == "all" else gender,
    "start_from": start_from.isoformat() if upcoming_only and start_from else None,
    "is_internship": {"All": None, "Trips": "false", "Internships": "true"}[trip_type],
}

with st.spinner("Loading trips..."):
    response = api_client.get_trips(**filters)

if not response["success"]:
    st.error(f"Could not load trips: {response['error']}")
    st.stop()

trips = response["data"]

if not trips:
    st.info("No trips match your filters right now. Check back soon!")
else:
    st.caption(f"{len(trips)} trip{'s' if len(trips) != 1 else ''} found")
    for row_start in range(0, len(trips), CARDS_PER_ROW):
        columns = st.columns(CARDS_PER_ROW)
        for column, trip in zip(columns, trips[row_start:row_start + CARDS_PER_ROW]):
            with column:
                show_trip_card(trip)

# Footer
st.markdown("---")
st.markdown("""
<div style="text-align: center; color: #666; padding: 1rem;">
    <p>Trip Board | Built with Streamlit and FastAPI</p>
</div>
""", unsafe_allow_html=True)
