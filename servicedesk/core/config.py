from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration read from environment variables."""

    app_name: str = Field(default="Service Desk API")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s %(levelname)s %(name)s %(message)s")
    # login outcomes, lockouts and token rejections
    security_log_level: str = Field(default="INFO")

    # HTTP server used by `python -m servicedesk`
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    # Only enable behind a proxy that overwrites X-Forwarded-For
    trust_forwarded_for: bool = Field(default=False)

    # Persistence: one JSON array per store under data_dir
    data_dir: Path = Field(default=Path("data"))
    upload_dir: Path = Field(default=Path("data/uploads"))

    # Session tokens
    jwt_secret: str = Field(default="change-me-servicedesk-secret")
    jwt_algorithm: str = Field(default="HS256")
    token_ttl_minutes: int = Field(default=8 * 60)

    # Login throttle policy
    login_max_attempts: int = Field(default=5)
    login_window_minutes: int = Field(default=15)
    login_lockout_minutes: int = Field(default=15)
    login_audit_max_entries: int = Field(default=2000)

    # Attachments
    upload_max_bytes: int = Field(default=5 * 1024 * 1024)
    upload_max_files: int = Field(default=5)

    # Bootstrap administrator written when the users store does not exist yet
    default_admin_name: str = Field(default="Admin")
    default_admin_login: str = Field(default="admin")
    default_admin_password: str = Field(default="admin")

    # Observability configuration
    otel_enabled: bool = Field(default=False)
    otel_service_name: str = Field(default="servicedesk-api")
    otel_exporter_otlp_endpoint: str | None = Field(default=None)

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()
