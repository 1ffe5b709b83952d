"""API configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://investor:investor@db:5432/investor"
    TELEGRAM_BOT_TOKEN: str = ""
    ADMIN_TELEGRAM_ID: str = ""
    MAX_DOCUMENT_BYTES: int = 10 * 1024 * 1024
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()
