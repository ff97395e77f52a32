from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./courtside.db"
    SQL_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # max events buffered per live subscriber before new ones are dropped
    BROADCAST_QUEUE_SIZE: int = 100

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
