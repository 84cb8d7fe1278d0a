"""
Centralized configuration management using pydantic-settings.

Settings are read once at startup from the environment (and `.env`). There is
no runtime reload.
"""

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hackdb.utils.logger import setup_logger

load_dotenv()

logger = setup_logger("core_config")


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="HOST", description="Server host address"
    )

    server_port: int = Field(
        default=5000, alias="PORT", description="Server port number"
    )

    # ===== Database Configuration =====
    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Database connection string (postgresql:// or sqlite+aiosqlite://)",
    )

    database_echo: bool = Field(
        default=False,
        alias="DATABASE_ECHO",
        description="Log every SQL statement",
    )

    # ===== Session Configuration =====
    session_secret: str | None = Field(
        default=None,
        alias="SESSION_SECRET",
        description="Secret used to sign session cookies",
    )

    session_cookie_name: str = Field(
        default="hackdb.sid",
        alias="SESSION_COOKIE_NAME",
        description="Name of the session cookie",
    )

    session_max_age_seconds: int = Field(
        default=14 * 24 * 60 * 60,
        alias="SESSION_MAX_AGE_SECONDS",
        description="Lifetime of a session cookie and its store entry",
    )

    session_cookie_secure: bool = Field(
        default=False,
        alias="SESSION_COOKIE_SECURE",
        description="Only send the session cookie over HTTPS",
    )

    # User-facing hint for database connection errors
    db_unavailable_hint: str = Field(
        default="Database connection failed. The server may be offline or network connectivity is down.",
        alias="DB_UNAVAILABLE_HINT",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Normalize the database URL and warn about missing configuration."""
        if self.database_url and self.database_url.startswith("postgresql://"):
            self.database_url = self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )

        if not self.database_url:
            logger.warning("DATABASE_URL environment variable not set.")

        if not self.session_secret:
            logger.warning("SESSION_SECRET environment variable not set.")

        return self

    def require_startup_values(self) -> None:
        """Raise if any value the server cannot start without is missing."""
        missing = [
            name
            for name, value in (
                ("DATABASE_URL", self.database_url),
                ("SESSION_SECRET", self.session_secret),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")


# Global settings instance
settings = Settings()
