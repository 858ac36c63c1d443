from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "WatchParty-BE"
    API_V1_STR: str = "/api/v1"

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    UPLOAD_DIR: str = "uploads"
    # empty -> derived from the incoming request
    PUBLIC_BASE_URL: str = ""

    ROOM_CODE_LENGTH: int = 6
    ROOM_CLOSED_REASON: str = "Room was closed because the host left"

    SYNC_INTERVAL_SECONDS: float = 0.2
    DRIFT_THRESHOLD_SECONDS: float = 0.5

    OUTBOX_HIGH_WATER: int = 64

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
