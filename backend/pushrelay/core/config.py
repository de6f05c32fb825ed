"""Application configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    PROJECT_NAME: str = "Push Relay API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development | production
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Logging
    # WHY: None means "pick from ENVIRONMENT" (DEBUG in development, INFO in production)
    LOG_LEVEL: Optional[str] = None

    # Database
    DATABASE_URL: str = "sqlite:///./pushrelay.db"
    DATABASE_ECHO: bool = False
    DATABASE_AUTO_CREATE: bool = False  # create tables on startup instead of running alembic

    # Web Push (VAPID)
    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_SUBJECT: str = "mailto:admin@example.com"
    PUSH_TIMEOUT_SECONDS: float = 12.0

    # Periodic sweep
    PUSH_SWEEP_ENABLED: bool = True
    PUSH_SWEEP_INTERVAL_SECONDS: int = 300  # every 5 minutes
    PUSH_SWEEP_TITLE: str = "PWA Web Push"
    PUSH_SWEEP_ICON: Optional[str] = "/icon-192x192.png"
    PUSH_SWEEP_URL: Optional[str] = "/"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    @property
    def is_production(self) -> bool:
        """Check if running with production logging and defaults."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def log_level(self) -> str:
        """Effective log level name."""
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "INFO" if self.is_production else "DEBUG"

    @property
    def vapid_configured(self) -> bool:
        """
        Check if Web Push VAPID credentials are present.

        WHY: Both keys are needed to sign push requests; delivery cannot
        start without them.
        """
        return all([self.VAPID_PUBLIC_KEY, self.VAPID_PRIVATE_KEY])

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
