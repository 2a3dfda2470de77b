"""Application settings and configuration.

This module defines all configuration options for the Zap Auth service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files. The
    signing secret is read once when the module is imported and is never
    rotated while the process runs.
    """

    # Application metadata
    app_name: str = Field(default="Zap Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    bcrypt_rounds: int = Field(default=10, alias="BCRYPT_ROUNDS")
    auth_cookie_name: str = Field(default="accessToken", alias="AUTH_COOKIE_NAME")
    auth_cookie_secure: bool = Field(default=False, alias="AUTH_COOKIE_SECURE")

    # Database configuration
    database_url: str = Field(default="sqlite:///./zap_auth.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Redis configuration for nonces and one-time codes
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # Challenge lifetimes
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")
    otp_ttl_seconds: int = Field(default=300, alias="OTP_TTL_SECONDS")
    otp_length: int = Field(default=6, alias="OTP_LENGTH")
    otp_resend_cooldown_seconds: int = Field(default=60, alias="OTP_RESEND_COOLDOWN_SECONDS")
    # Wrong guesses allowed per code before it is discarded; 0 disables the limit.
    otp_max_attempts: int = Field(default=5, alias="OTP_MAX_ATTEMPTS")
    # Extra store lifetime so stale challenges are reported as expired
    # rather than silently missing.
    challenge_grace_seconds: int = Field(default=60, alias="CHALLENGE_GRACE_SECONDS")

    # Outbound email via the Resend HTTP API
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_base_url: str = Field(default="https://api.resend.com", alias="RESEND_BASE_URL")
    email_from: str = Field(default="Zap Auth <no-reply@zap-auth.local>", alias="EMAIL_FROM")
    notification_timeout_seconds: float = Field(
        default=10.0,
        alias="NOTIFICATION_TIMEOUT_SECONDS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def access_token_expire_seconds(self) -> int:
        """Return the session token lifetime in seconds (used for cookie max-age)."""
        return self.access_token_expire_minutes * 60


settings = Settings()  # type: ignore[call-arg]
