"""Configuration models for the ward map data pipeline."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Johannesburg, the default municipality shown before a location fix
_DEFAULT_LATITUDE = -26.2041
_DEFAULT_LONGITUDE = 28.0473


class CacheConfig(BaseModel):
    key: str = "cached_wards_geojson"
    version: str = "1"
    expiry_hours: float = 24
    directory: str = "~/.cache/wardmap"

    @property
    def expiry(self) -> timedelta:
        return timedelta(hours=self.expiry_hours)


class SimplifyConfig(BaseModel):
    tolerance: float = 0.002  # degrees; higher = coarser ward outlines
    preserve_topology: bool = True


class ViewportConfig(BaseModel):
    settle_ms: int = 300
    initial_latitude: float = _DEFAULT_LATITUDE
    initial_longitude: float = _DEFAULT_LONGITUDE
    initial_latitude_delta: float = 0.5
    initial_longitude_delta: float = 0.5


class ProviderConfig(BaseModel):
    api_base_url: str = "https://setshaba-connect-backend.onrender.com"
    dataset_url: str | None = None  # None = {api_base_url}/api/wards.geojson
    reports_path: str = "/api/reports"
    timeout_s: float = 30
    report_limit: int = 100

    @property
    def resolved_dataset_url(self) -> str:
        """Dataset URL: explicit value or derived from the API base URL."""
        if self.dataset_url is not None:
            return self.dataset_url
        return self.api_base_url.rstrip("/") + "/api/wards.geojson"

    @property
    def reports_url(self) -> str:
        return self.api_base_url.rstrip("/") + self.reports_path


class MapDataConfig(BaseSettings):
    """Top-level settings; every field can be overridden from WARDMAP_* env vars.

    Nested fields use a double underscore, e.g.
    ``WARDMAP_PROVIDER__API_BASE_URL=http://localhost:3000``.
    """

    model_config = SettingsConfigDict(
        env_prefix="WARDMAP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    dataset_name: str = "wards"
    cache: CacheConfig = CacheConfig()
    simplify: SimplifyConfig = SimplifyConfig()
    viewport: ViewportConfig = ViewportConfig()
    provider: ProviderConfig = ProviderConfig()
