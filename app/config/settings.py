# app/config/settings.py

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    # Redis Configuration
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DECODE_RESPONSES: bool = True

    # Application Configuration
    APP_NAME: str = "Ludo Live Backend"
    DEBUG: bool = True
    CORS_ORIGINS: list = [
        "http://localhost:3000",  # React/Next.js default
        "http://localhost:5173",  # Vite default
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Session Configuration
    SESSION_TTL_SECONDS: int = 3600 * 2  # Idle sessions expire after 2 hours

    # Nickname Configuration
    DEFAULT_NICKNAME: str = "Anonymous"
    NICKNAME_MAX_LENGTH: int = 15


settings = Settings()
