"""pydantic-settings based application settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """notesync application settings.

    All values are loaded from environment variables.
    A .env file in the working directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Local replica ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./notes.db"

    # --- Remote endpoint ---
    REMOTE_URL: str = "http://localhost:5000"
    REMOTE_API_PREFIX: str = "/api"
    REMOTE_TIMEOUT_SECONDS: float = 30.0

    # --- Sync cadence ---
    SYNC_ENABLED: bool = True
    SYNC_INTERVAL_SECONDS: float = 30.0
    RECONNECT_DELAY_SECONDS: float = 1.0  # let the connection settle before syncing
    CONNECTIVITY_PROBE_SECONDS: float = 10.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
