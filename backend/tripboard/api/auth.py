from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import BaseModel
from datetime import datetime
import logging

from tripboard.auth.password import admin_credentials
from tripboard.auth.jwt_manager import jwt_manager
from tripboard.auth.rate_limiter import rate_limiter
from tripboard.auth.middleware import get_current_admin, CurrentAdmin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    role: str = "ADMIN"


def _client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, http_request: Request):
    """Check the shared admin password and open an admin session."""
    client_id = _client_id(http_request)

    # Check rate limiting
    retry_after = rate_limiter.login_retry_after(client_id)
    if retry_after is not None:
        raise HTTPException(
            status_code=429,
            detail=f"Too many login attempts. Try again in {retry_after} seconds",
            headers={"Retry-After": str(retry_after)}
        )

    if not admin_credentials.configured:
        logger.error("Admin login attempted but no admin password is configured")
        raise HTTPException(status_code=503, detail="Admin access is not configured")

    if not admin_credentials.verify(request.password):
        rate_limiter.record_login(client_id, False)
        logger.warning(f"Invalid admin password from {client_id}")
        raise HTTPException(status_code=401, detail="Invalid password")

    rate_limiter.record_login(client_id, True)

    access_token, _, expires_at = jwt_manager.create_access_token()
    logger.info(f"Admin session opened from {client_id}")

    return LoginResponse(access_token=access_token, expires_at=expires_at)


@router.post("/logout")
async def logout(current_admin: CurrentAdmin = Depends(get_current_admin)):
    """Revoke the current admin session."""
    jwt_manager.revoke_session(current_admin.session_id)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_current_admin_info(current_admin: CurrentAdmin = Depends(get_current_admin)):
    """Describe the current admin session."""
    return {"role": current_admin.role, "authenticated": True}
