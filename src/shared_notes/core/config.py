"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Server env vars:
        STORE_BACKEND (redis), STORE_NAMESPACE (simple-notes),
        REDIS_HOST (redis), REDIS_PORT (6379), REDIS_DB (0),
        MAX_CONTENT_CHARS (2000), MAX_IMAGE_DATAURL_CHARS (350000),
        MAX_NOTES (500), LIST_LIMIT (50), LOG_LEVEL (INFO)

    Client env vars:
        API_URL, CLIENT_TIMEOUT (12.0), CLIENT_STATE_DIR,
        REFRESH_INTERVAL (15.0), SYNC_MODE (shared)
    """

    PROJECT_NAME: str = "Shared Notes"
    API_PREFIX: str = "/api/notes"

    # Blob store
    STORE_BACKEND: str = "redis"  # "redis" | "memory"
    STORE_NAMESPACE: str = "simple-notes"
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Limits
    MAX_CONTENT_CHARS: int = 2000
    # Data URLs get big fast; ~350KB of base64 text
    MAX_IMAGE_DATAURL_CHARS: int = 350_000
    MAX_NOTES: int = 500
    LIST_LIMIT: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

    # Client
    API_URL: str = "http://localhost:8000/api/notes"
    CLIENT_TIMEOUT: float = 12.0
    CLIENT_STATE_DIR: str = ".shared-notes"
    REFRESH_INTERVAL: float = 15.0
    SYNC_MODE: str = "shared"  # "shared" | "local-fallback"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @property
    def REDIS_URL(self) -> str:
        """Redis connection string."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


settings = Settings()
