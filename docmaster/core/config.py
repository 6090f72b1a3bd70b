from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "docmaster"
    log_level: str = "INFO"

    # Session lifetime is fixed at issuance; the cookie max-age mirrors it.
    session_ttl_hours: int = 24
    session_cookie_name: str = "docmaster_session"
    # Mark the cookie Secure when the API is served behind TLS.
    session_cookie_secure: bool = False

    # Fixed delays of the simulated ingestion progression (seconds).
    ingest_processing_delay_s: float = 1.0
    ingest_completion_delay_s: float = 5.0

    # Bootstrap an admin account so a fresh process can be administered.
    seed_default_admin: bool = True
    default_admin_username: str = "admin"
    default_admin_password: str = "admin123"
    default_admin_name: str = "Admin User"
    default_admin_email: str = "admin@example.com"
    # Populate a handful of sample documents owned by the default admin.
    seed_demo_documents: bool = False

    # Comma-delimited origins allowed to call the API with credentials.
    cors_allowed_origins: str = "http://localhost:3000"


@lru_cache
def get_settings() -> Settings:
    return Settings()
