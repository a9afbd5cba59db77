from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: SecretStr

    # Redis (shared rate limit storage; in-memory storage is used when unset)
    REDIS_URL: SecretStr | None = None

    # Security
    CRON_SECRET: SecretStr | None = None  # Bearer token for the scheduler trigger
    ADMIN_API_KEY: SecretStr | None = None  # Bearer token for dead letter administration

    # Zoom
    ZOOM_WEBHOOK_SECRET: SecretStr | None = None
    ZOOM_SIGNATURE_TOLERANCE_SECONDS: int = 300

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_WEBHOOK: str = "60/minute"  # Provider webhook POST endpoints
    RATE_LIMIT_ADMIN_READ: str = "30/minute"  # Dead letter listing
    RATE_LIMIT_ADMIN_WRITE: str = "10/minute"  # Requeue / reclaim

    # Webhook retry pipeline
    WEBHOOK_RETRY_BATCH_SIZE: int = 10
    WEBHOOK_MAX_ATTEMPTS: int = 3
    WEBHOOK_REQUEUE_DELAY_MINUTES: int = 1
    WEBHOOK_STALE_PROCESSING_MINUTES: int = 15
    WEBHOOK_PROCESSING_TIMEOUT_SECONDS: float = 30.0

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def rate_limit_storage_uri(self) -> str:
        if self.REDIS_URL is None:
            return "memory://"
        return self.REDIS_URL.get_secret_value()

    # Server
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    BACKEND_WORKERS: int = 1

    # - Development -
    DEV_UVICORN_RELOAD: bool = False

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "DEBUG"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
