"""Shared fixtures and fakes for wardmap tests."""

import asyncio

import pytest

from wardmap.cache import GeoCache
from wardmap.controller import GeoDataController
from wardmap.models import ViewportBounds, LatLng
from wardmap.store import MemoryKeyValueStore

CACHE_KEY = "cached_wards_geojson"


def square(lon, lat, size=0.1, steps=1):
    """Closed square ring with ``steps`` segments per side (collinear extras)."""
    ring = []
    corners = [(lon, lat), (lon + size, lat), (lon + size, lat + size), (lon, lat + size)]
    for i, (x0, y0) in enumerate(corners):
        x1, y1 = corners[(i + 1) % 4]
        for s in range(steps):
            t = s / steps
            ring.append([x0 + (x1 - x0) * t, y0 + (y1 - y0) * t])
    ring.append(list(corners[0]))
    return ring


def ward(ward_id, lon, lat, size=0.1, steps=1):
    return {
        "type": "Feature",
        "properties": {"WardID": ward_id},
        "geometry": {"type": "Polygon", "coordinates": [square(lon, lat, size, steps)]},
    }


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, hours):
        self.now += hours * 3600


class FakeProvider:
    """Returns queued documents (or raises queued errors) one call at a time."""

    def __init__(self, *results, delay=0.0):
        self.results = list(results)
        self.delay = delay
        self.calls = 0

    async def fetch_raw_dataset(self):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        delay = self.delay(self.calls) if callable(self.delay) else self.delay
        await asyncio.sleep(delay)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def wards_document():
    """Two Johannesburg wards and one far away in Cape Town."""
    return {
        "type": "FeatureCollection",
        "features": [
            ward("JHB-1", 28.00, -26.25, steps=4),
            ward("JHB-2", 28.10, -26.15, steps=4),
            ward("CPT-1", 18.40, -33.95, steps=4),
        ],
    }


@pytest.fixture
def johannesburg_bounds():
    return ViewportBounds(
        north_east=LatLng(latitude=-25.9, longitude=28.3),
        south_west=LatLng(latitude=-26.5, longitude=27.8),
    )


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(store, clock):
    return GeoCache(store, CACHE_KEY, clock=clock)


@pytest.fixture
def make_controller(cache):
    def _make(provider, tolerance=0.002):
        return GeoDataController(provider, cache, tolerance=tolerance)
    return _make
