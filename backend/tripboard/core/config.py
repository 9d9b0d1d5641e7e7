from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Environment
    environment: str = "development"

    # Database
    database_url: str = "sqlite:///./tripboard.db"

    # Object storage
    storage_root: str = "./storage"
    storage_bucket: str = "trip-photos"
    storage_public_url: str = "http://localhost:8000/storage"
    default_image: str = "/placeholder.svg"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Admin gate (plaintext is hashed at start-up when no hash is configured)
    admin_password: Optional[str] = None
    admin_password_hash: Optional[str] = None

    # JWT
    jwt_access_token_expire_minutes: int = 60

    # CORS
    allowed_origins: list[str] = ["http://localhost:8501"]
    # Trusted Host header values, enforced in production only
    allowed_hosts: list[str] = ["localhost", "127.0.0.1"]

    # Rate limiting
    rate_limit_crud_per_minute: int = 60

    # Security
    max_login_attempts: int = 5
    lockout_duration_minutes: int = 5

    # Image roles: at most one thumbnail and one flyer per trip
    enforce_unique_image_roles: bool = True

    class Config:
        env_file = ".env"


settings = Settings()
