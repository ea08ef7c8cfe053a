"""Application configuration using Pydantic Settings."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULT_SECRET = "change-me-in-production"
_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Key-value store
    store_backend: str = "redis"  # 'redis' or 'memory'
    redis_url: str = "redis://localhost:6379/0"
    store_key_prefix: str = "mindcare:"

    # Security
    secret_key: str = _INSECURE_DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12

    # Patients sign up without an email; the gateway mints one on this domain
    patient_email_domain: str = "mindcare.local"

    # Logging
    log_format: str = "json"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "mindcare-api"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Chat sync client
    api_base_url: str = "http://localhost:8000"
    chat_poll_interval_seconds: float = 2.0
    client_timeout_seconds: float = 10.0

    # Testing
    testing: bool = False  # Set to True during tests to use the in-memory store


settings = Settings()


def validate_secret_key() -> None:
    """Validate that secret_key is safe for production use.

    Rejects the insecure default and enforces minimum length.
    Skipped during tests (TESTING=true) to avoid requiring a real secret.
    """
    if settings.testing:
        return

    if (
        settings.secret_key == _INSECURE_DEFAULT_SECRET
        or settings.secret_key.startswith("change-me")
    ):
        print(
            "FATAL: SECRET_KEY is set to an insecure default. "
            "Set a strong SECRET_KEY environment variable (>= 32 characters). "
            "Generate one with: openssl rand -hex 32",
            file=sys.stderr,
        )
        sys.exit(1)

    if len(settings.secret_key) < _MIN_SECRET_LENGTH:
        print(
            f"FATAL: SECRET_KEY must be at least {_MIN_SECRET_LENGTH} characters "
            f"(currently {len(settings.secret_key)}).",
            file=sys.stderr,
        )
        sys.exit(1)
