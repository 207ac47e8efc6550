"""Tests for settings defaults and environment overrides."""

from datetime import timedelta

from wardmap.config import CacheConfig, MapDataConfig, ProviderConfig


class TestDefaults:
    def test_cache_defaults(self):
        cfg = MapDataConfig()
        assert cfg.cache.key == "cached_wards_geojson"
        assert cfg.cache.expiry == timedelta(hours=24)

    def test_viewport_defaults(self):
        cfg = MapDataConfig()
        assert cfg.viewport.settle_ms == 300
        assert (cfg.viewport.initial_latitude, cfg.viewport.initial_longitude) == (-26.2041, 28.0473)

    def test_simplify_default(self):
        assert MapDataConfig().simplify.tolerance == 0.002

    def test_fractional_expiry(self):
        assert CacheConfig(expiry_hours=0.5).expiry == timedelta(minutes=30)


class TestProviderUrls:
    def test_explicit_dataset_url_wins(self):
        cfg = ProviderConfig(dataset_url="https://cdn.example/wards.geojson")
        assert cfg.resolved_dataset_url == "https://cdn.example/wards.geojson"

    def test_reports_url(self):
        assert ProviderConfig(api_base_url="http://localhost:3000/").reports_url == \
            "http://localhost:3000/api/reports"


class TestEnvironmentOverrides:
    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("WARDMAP_PROVIDER__API_BASE_URL", "http://localhost:3000")
        monkeypatch.setenv("WARDMAP_CACHE__EXPIRY_HOURS", "6")
        cfg = MapDataConfig()
        assert cfg.provider.api_base_url == "http://localhost:3000"
        assert cfg.cache.expiry == timedelta(hours=6)

    def test_top_level_override(self, monkeypatch):
        monkeypatch.setenv("WARDMAP_DATASET_NAME", "municipalities")
        assert MapDataConfig().dataset_name == "municipalities"
