"""
config.py — pydantic-settings Settings class.

All environment variables for the HomeMatch backend are declared here.
The API and the listing pipeline both import `settings` from this module.

Usage:
    from homematch_shared.config import settings
    print(settings.supabase_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_anon_key: str = Field(default="")
    supabase_service_key: str = Field(default="")
    supabase_jwt_secret: str = Field(default="")

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:3000")
    rate_limit_enabled: bool = Field(default=True)

    # Avatar storage
    avatar_bucket: str = Field(default="avatars")
    avatar_max_bytes: int = Field(default=2 * 1024 * 1024)

    # -------------------------------------------------------------------------
    # Third-party APIs
    # -------------------------------------------------------------------------
    google_maps_server_api_key: str = Field(default="")
    google_places_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place"
    )
    rapidapi_key: str = Field(default="")
    zillow_rapidapi_host: str = Field(default="zillow-com1.p.rapidapi.com")
    # Semicolon-separated, since each location already contains a comma
    zillow_locations: str = Field(default="")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def zillow_locations_list(self) -> list[str]:
        return [loc.strip() for loc in self.zillow_locations.split(";") if loc.strip()]

    @field_validator("supabase_url", "google_places_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton — import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
