# stockpos/config.py
from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal, Optional

from pydantic_settings import BaseSettings

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    # Remote REST backend and sync endpoint (same names as the mobile build)
    EXPO_PUBLIC_API_BASE: str = "https://leonardocoutinho.dev/api"
    EXPO_PUBLIC_SYNC_URL: str = "http://localhost:3000/sync"

    # Local storage
    DATABASE_PATH: str = "stock.db"
    TOKEN_FILE: str = "auth.json"
    IMAGES_DIR: str = "images"

    # Synchronization behaviour
    SYNC_MODE: Literal["best_effort", "outbox"] = "best_effort"
    SYNC_TIMEOUT: Optional[float] = None
    SYNC_RETRY_BASE_SECONDS: float = 2.0
    SYNC_RETRY_MAX_SECONDS: float = 300.0
    # How often the outbox is re-checked for due retries
    SYNC_RETRY_INTERVAL_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.DATABASE_PATH}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
