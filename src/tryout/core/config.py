"""
Application Configuration

Settings are read from the process environment (and an optional .env file)
using pydantic-settings. Secrets have no defaults: services check for them
and fail closed with a configuration error when they are missing.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the Tryout PTN API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    python_env: str = "development"

    # Storage
    database_url: str | None = None
    redis_url: str = "redis://localhost:6379/0"

    # CORS - the public endpoints accept any origin
    cors_origins: str = "*"

    # JWT
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12

    # OTP
    otp_secret: str | None = None
    otp_expiry_minutes: int = 5

    # Email (Resend)
    resend_api_key: str | None = None
    email_from: str = "Tryout PTN <onboarding@resend.dev>"

    # Event rules
    max_participants: int = 1000
    payment_amount: int = 10000

    # Uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    @property
    def is_development(self) -> bool:
        return self.python_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.python_env.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Comma separated CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()
