import base64
import hashlib
import hmac
import secrets
from typing import Optional

from tripboard.core.config import settings


class PasswordManager:
    """PBKDF2-SHA256 hashing for the shared admin password.

    Hashes are stored as ``pbkdf2_sha256$<iterations>$<salt>$<digest>``.
    """

    algorithm = "pbkdf2_sha256"
    iterations = 390000

    def hash_password(self, password: str, salt: Optional[bytes] = None) -> str:
        salt = salt or secrets.token_bytes(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, self.iterations)
        return "$".join([
            self.algorithm,
            str(self.iterations),
            base64.b64encode(salt).decode(),
            base64.b64encode(digest).decode(),
        ])

    def verify_password(self, password: str, hashed: str) -> bool:
        try:
            algorithm, iterations, salt, digest = hashed.split("$")
            if algorithm != self.algorithm:
                return False
            expected = base64.b64decode(digest)
            actual = hashlib.pbkdf2_hmac("sha256", password.encode(), base64.b64decode(salt), int(iterations))
        except (ValueError, TypeError):
            return False
        return hmac.compare_digest(expected, actual)

    def needs_rehash(self, hashed: str) -> bool:
        try:
            return int(hashed.split("$")[1]) < self.iterations
        except (IndexError, ValueError):
            return True


password_manager = PasswordManager()


class AdminCredentials:
    """The configured admin password, hashed once per process."""

    def __init__(self):
        self._hash: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(settings.admin_password_hash or settings.admin_password)

    def current_hash(self) -> Optional[str]:
        if settings.admin_password_hash:
            return settings.admin_password_hash
        if not settings.admin_password:
            return None
        if self._hash is None or not password_manager.verify_password(settings.admin_password, self._hash):
            self._hash = password_manager.hash_password(settings.admin_password)
        return self._hash

    def verify(self, password: str) -> bool:
        hashed = self.current_hash()
        if not hashed:
            return False
        return password_manager.verify_password(password, hashed)


admin_credentials = AdminCredentials()
