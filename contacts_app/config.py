"""
Конфігурація платформи контактів та її клієнта.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Налаштування зі змінних оточення."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    database_url: str = Field(default="sqlite:///./sql_app.sqlite")

    # Токени
    secret_key: str = Field(default="change-me")
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)
    recovery_token_expire_minutes: int = Field(default=60)

    # Адреса, за якою клієнт обслуговує /login, /update-password, ...
    site_url: str = Field(default="http://localhost:3000")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Клієнт
    api_url: str = Field(default="http://localhost:8000")

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Повертає закешований екземпляр налаштувань."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
