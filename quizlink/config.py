from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from QUIZLINK_* environment variables"""
    model_config = SettingsConfigDict(env_prefix="QUIZLINK_", env_file=".env", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./quizlink.db")
    database_ssl: bool = False
    database_echo: bool = False
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Share links are built from this when set, otherwise from the request
    public_base_url: Optional[str] = None

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url")
    def use_async_driver(cls, value: str) -> str:
        # Hosting providers hand out postgres:// URLs
        for prefix in ("postgres://", "postgresql://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix):]
        return value

    @field_validator("public_base_url")
    def strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()
