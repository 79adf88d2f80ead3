from typing import List, Union, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://postgres:root@db/postgres"
    CORS_ORIGINS: Union[str, List[str]] = ["http://localhost", "http://localhost:5173", "*"]
    LOG_LEVEL: str = "INFO"
    JWT_SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    JWT_AUDIENCE: Optional[str] = None

    # Trash retention
    TRASH_RETENTION_DAYS: int = 90
    TRASH_EXPIRING_SOON_DAYS: int = 7
    RETENTION_SWEEP_INTERVAL_MINUTES: int = 60
    RETENTION_SWEEP_ENABLED: bool = True

    # Listing cache
    QUERY_CACHE_TTL_SECONDS: int = 30

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
