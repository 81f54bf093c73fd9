# app/core/config.py

from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Money Jars API"
    DEBUG: bool = False
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./money_jars.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30       # Seconds to wait for a free connection
    DB_CONNECT_TIMEOUT: int = 10    # Seconds; also the SQLite busy timeout
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 0.05

    # Seed the six canonical jars on startup
    SEED_DEFAULT_JARS: bool = True

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "https://localhost:3000",
    ]

    @property
    def is_sqlite(self) -> bool:
        """Check if we're running against SQLite"""
        return self.DATABASE_URL.startswith("sqlite")

# Create a global settings instance
settings = Settings()
