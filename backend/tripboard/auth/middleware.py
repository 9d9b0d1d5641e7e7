from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from tripboard.auth.jwt_manager import jwt_manager
from tripboard.auth.rate_limiter import rate_limiter

# Security scheme for FastAPI
security = HTTPBearer(auto_error=False)


class CurrentAdmin:
    """Context class to hold the authenticated admin session."""
    def __init__(self, session_id: str, role: str):
        self.session_id = session_id
        self.role = role


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentAdmin:
    """Dependency requiring a valid, unrevoked admin token."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = jwt_manager.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if payload.get("role") != "ADMIN":
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    return CurrentAdmin(session_id=payload["jti"], role=payload["role"])


async def check_api_rate_limit(current_admin: CurrentAdmin = Depends(get_current_admin)) -> CurrentAdmin:
    """Dependency to rate limit admin writes."""
    if not rate_limiter.allow_write(current_admin.session_id):
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    return current_admin
