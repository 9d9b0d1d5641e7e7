from jose import jwt, JWTError
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from tripboard.core.database import SessionLocal
from tripboard.models import AdminSession
from tripboard.core.config import settings


class JWTManager:
    """Issues admin access tokens bound to revocable server-side sessions."""

    def __init__(self):
        # Generate RSA key pair for RS256 signing
        self.private_key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )
        self.public_key = self.private_key.public_key()

        # Serialize keys for JWT library
        self.private_key_pem = self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )

        self.public_key_pem = self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

        self.algorithm = "RS256"
        self.access_token_ttl = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    def _hash_jti(self, jti: str) -> str:
        return hashlib.sha256(jti.encode()).hexdigest()

    def create_access_token(self) -> Tuple[str, str, datetime]:
        """Create an admin token and record its session. Returns (token, jti, expires_at)."""
        jti = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        expires_at = now + self.access_token_ttl

        payload = {
            "sub": "admin",
            "role": "ADMIN",
            "jti": jti,
            "iat": now,
            "exp": expires_at,
            "type": "access"
        }
        token = jwt.encode(payload, self.private_key_pem, algorithm=self.algorithm)

        db = SessionLocal()
        try:
            db.add(AdminSession(
                jti=jti,
                hashed_token=self._hash_jti(jti),
                expires_at=expires_at
            ))
            db.commit()
        finally:
            db.close()

        return token, jti, expires_at

    def verify_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify the signature and that the session has not been revoked."""
        try:
            payload = jwt.decode(token, self.public_key_pem, algorithms=[self.algorithm])
        except JWTError:
            return None

        if payload.get("type") != "access" or not payload.get("jti"):
            return None

        db = SessionLocal()
        try:
            session = db.query(AdminSession).filter(
                AdminSession.hashed_token == self._hash_jti(payload["jti"]),
                AdminSession.is_revoked == False
            ).first()

            if not session:
                return None

            return payload
        finally:
            db.close()

    def revoke_session(self, jti: str) -> bool:
        """Revoke an admin session by JTI."""
        db = SessionLocal()
        try:
            session = db.query(AdminSession).filter(
                AdminSession.hashed_token == self._hash_jti(jti)
            ).first()

            if session and not session.is_revoked:
                session.is_revoked = True
                db.commit()
                return True

            return False
        finally:
            db.close()

    def cleanup_expired_sessions(self) -> int:
        """Delete expired admin sessions."""
        db = SessionLocal()
        try:
            count = db.query(AdminSession).filter(
                AdminSession.expires_at < datetime.now(timezone.utc)
            ).delete()

            db.commit()
            return count
        finally:
            db.close()


# Global JWT manager instance
jwt_manager = JWTManager()
