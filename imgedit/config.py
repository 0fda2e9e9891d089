from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Gemini
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("api_key", "API_KEY", "GEMINI_API_KEY"),
    )
    image_model: str = Field("gemini-2.5-flash-image", min_length=1)

    # Startup image
    default_image_url: str = "https://picsum.photos/id/1062/1024/1024"

    # Fetching / limits
    request_timeout: float = Field(60.0, gt=0, description="Seconds to wait for the default image download.")
    max_image_bytes: int = Field(50 * 1024 * 1024, gt=0, description="Largest accepted image, local or remote.")

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
