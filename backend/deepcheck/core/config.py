"""Application configuration settings."""
from __future__ import annotations
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Deepcheck"
    DEBUG: bool = False
    VERSION: str = "1.0.0"

    # Database (reference Analysis Service)
    DATABASE_URL: str = "sqlite+aiosqlite:///./deepcheck.db"

    # Remote Analysis / Upload Service (optional, falls back to simulator)
    ANALYSIS_API_URL: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Polling
    POLL_INTERVAL_SECONDS: float = 3.0

    # Upload
    UPLOAD_MAX_BYTES: int = 100 * 1024 * 1024    # 100 MiB
    UPLOAD_PROGRESS_TICK_SECONDS: float = 0.3
    UPLOAD_PROGRESS_STEP: int = 5
    UPLOAD_PROGRESS_CAP: int = 95

    # Simulator
    SIMULATOR_PROCESSING_POLLS: int = 1          # polls answered with "processing"

    DEFAULT_USER_ID: str = "demo_user"

    @property
    def analysis_api_configured(self) -> bool:
        return bool(self.ANALYSIS_API_URL)


@lru_cache
def get_settings() -> Settings:
    return Settings()
