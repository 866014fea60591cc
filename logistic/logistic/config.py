from functools import lru_cache
from typing import Annotated, Optional
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings loaded from environment variables or ``.env``."""

    # Core
    SECRET_KEY: str = "django-insecure-dev-only-change-me"
    DEBUG: bool = True
    ALLOWED_HOSTS: Annotated[list[str], NoDecode] = ["localhost", "127.0.0.1"]
    TIME_ZONE: str = "UTC"

    # Database
    DB_ENGINE: str = "django.db.backends.sqlite3"
    DB_NAME: Optional[str] = None  # sqlite file under BASE_DIR when unset
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: str = ""

    # API
    API_PAGE_SIZE: int = 50
    JWT_ACCESS_MINUTES: int = 60
    JWT_REFRESH_DAYS: int = 7

    # Allocation engine
    ISSUE_SLA_HOURS: int = 24

    # Logging
    LOG_LEVEL: str = "INFO"
    DJANGO_LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @property
    def uses_sqlite(self) -> bool:
        return self.DB_ENGINE.endswith("sqlite3")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
