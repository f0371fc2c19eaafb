"""
Application settings.

Values come from the environment (prefix ``BIODIVERSITY_NEARBY_``) or an
optional ``.env`` file, e.g. ``BIODIVERSITY_NEARBY_LAT=52.37``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the sync engine, flows and CLI."""

    model_config = SettingsConfigDict(
        env_prefix="BIODIVERSITY_NEARBY_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "biodiversity-nearby"
    app_env: str = "development"
    debug: bool = False

    data_dir: Path = Path("data/kv")
    site_dir: Path = Path("site")
    api_port: int = 8000

    # Fixed position; when unset the IP lookup is used.
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    geolocation_timeout: float = 5.0
    viewport_radius_m: float = Field(default=400.0, gt=0)

    sync_threshold: int = Field(default=10, ge=0)
    max_workers: int = Field(default=8, ge=1)
    max_uncertainty_m: int = Field(default=500, ge=0)

    # ISO 639-2 code, as used by GBIF vernacular names.
    language: str = "eng"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
