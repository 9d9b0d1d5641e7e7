from sqlalchemy import Column, String, Boolean, DateTime
from .base import BaseModel


class AdminSession(BaseModel):
    __tablename__ = "admin_session"

    jti = Column(String(255), unique=True, index=True, nullable=False)
    hashed_token = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_revoked = Column(Boolean, default=False)
