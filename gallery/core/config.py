"""Environment-driven configuration for the gallery client.

Every setting the client relies on lives here so the rest of the code never
reads ``os.environ`` directly. Values are read once, the first time
``get_settings`` runs, and cached for the life of the process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:5000"


class GallerySettings(BaseSettings):
    """Environment-driven client configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Gallery Vault"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    TEMPLATES_DIR: Path | None = None

    # Remote exhibition service. A blank value counts as unset.
    API_URL: str = Field(
        default=DEFAULT_API_URL,
        validation_alias=AliasChoices("GALLERY_API_URL", "API_URL"),
    )
    EXHIBITIONS_ENDPOINT: str = "/api/exhibitions"

    # Navigation targets used by the access gate and the page layer.
    LOGIN_PATH: str = "/login"
    DETAIL_PATH: str = "/exhibitions/{id}"

    CURRENCY_SYMBOL: str = "₹"
    LOG_LEVEL: str = "INFO"

    @field_validator("API_URL", mode="before")
    @classmethod
    def default_blank_api_url(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_API_URL
        return str(value).strip().rstrip("/")

    @property
    def templates_dir(self) -> Path:
        return self.TEMPLATES_DIR if self.TEMPLATES_DIR is not None else self.BASE_DIR / "templates"


@lru_cache(maxsize=1)
def get_settings() -> GallerySettings:
    settings = GallerySettings()
    if settings.TEMPLATES_DIR is None:
        settings.TEMPLATES_DIR = settings.BASE_DIR / "templates"
    return settings


# Importing ``settings`` anywhere gives the configured values without rebuilding
# the object each time.
settings = get_settings()
