from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    cors_origins: list[str] = []
    forwarded_allow_ips: list[str] = ["127.0.0.1"]  # Proxies trusted for X-Forwarded-For; "*" trusts any
    # Token and session lifecycle
    access_token_ttl_minutes: int = 15
    refresh_token_ttl_days: int = 7
    max_sessions_per_user: int = 5
    session_inactivity_days: int = 30  # Active sessions idle longer than this are revoked by the cleanup task
    revoked_session_retention_days: int = 90  # Revoked sessions are deleted this long after revocation
    session_cleanup_interval_hours: int = 24  # 0 disables the background cleanup loop
    # Accounts
    institutional_email_domain: str = "institutsaintjean.org"
    default_admin_email: str = "admin@institutsaintjean.org"
    default_admin_password: str = "admin123"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "EQUIZZ_",
        "extra": "ignore",
    }
