"""Data model: GeoJSON datasets, viewport geometry, reports and markers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ParseFailure

POLYGON_TYPES = ("Polygon", "MultiPolygon")


def _freeze(value):
    """Turn nested coordinate lists into nested tuples."""
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _close_ring(ring: tuple) -> tuple:
    if len(ring) > 1 and ring[0] != ring[-1]:
        return ring + (ring[0],)
    return ring


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class ViewportBounds(BaseModel):
    """Visible map rectangle as north-east / south-west corners."""

    model_config = ConfigDict(frozen=True)

    north_east: LatLng
    south_west: LatLng


class Region(BaseModel):
    """Map region as reported by a map widget: center plus spans in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float

    def to_bounds(self) -> ViewportBounds:
        half_lat = self.latitude_delta / 2
        half_lng = self.longitude_delta / 2
        return ViewportBounds(
            north_east=LatLng(latitude=self.latitude + half_lat,
                              longitude=self.longitude + half_lng),
            south_west=LatLng(latitude=self.latitude - half_lat,
                              longitude=self.longitude - half_lng),
        )


class Geometry(BaseModel):
    """A GeoJSON geometry. Coordinates are [lon, lat] and stored as tuples."""

    model_config = ConfigDict(frozen=True)

    type: str
    coordinates: Any = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _normalize_coordinates(cls, value, info):
        coords = _freeze(value)
        geom_type = info.data.get("type")
        if coords and geom_type == "Polygon":
            coords = tuple(_close_ring(ring) for ring in coords)
        elif coords and geom_type == "MultiPolygon":
            coords = tuple(tuple(_close_ring(ring) for ring in poly) for poly in coords)
        return coords

    @property
    def is_polygonal(self) -> bool:
        return self.type in POLYGON_TYPES

    def to_geojson(self) -> dict:
        return {"type": self.type, "coordinates": _thaw(self.coordinates)}


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | int | float | None = None
    geometry: Geometry | None = None
    properties: dict[str, Any] = {}

    @field_validator("properties", mode="before")
    @classmethod
    def _null_properties(cls, value):
        return {} if value is None else value

    def to_geojson(self) -> dict:
        doc = {
            "type": "Feature",
            "geometry": self.geometry.to_geojson() if self.geometry else None,
            "properties": dict(self.properties),
        }
        if self.id is not None:
            doc["id"] = self.id
        return doc


class GeoDataset(BaseModel):
    """Named, immutable feature collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    features: tuple[Feature, ...] = ()

    def with_features(self, features) -> GeoDataset:
        """Return a new dataset with the same name and the given features."""
        return GeoDataset(name=self.name, features=tuple(features))

    def to_geojson(self) -> dict:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.features],
        }


class CacheEntry(BaseModel):
    """A dataset as persisted by GeoCache; timestamp is epoch milliseconds."""

    version: str
    timestamp: int
    data: GeoDataset


class Report(BaseModel):
    """A citizen report as listed by the backend's /api/reports endpoint."""

    model_config = ConfigDict(frozen=True)

    id: str | int
    lat: float
    lng: float
    title: str
    description: str = ""
    category: str = "other"
    status: str = "pending"


class Marker(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | int
    coordinate: LatLng
    title: str
    description: str = ""
    color: str
    payload: Any = None


def _thaw(value):
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def parse_feature_collection(document: Any, name: str) -> GeoDataset:
    """Validate a raw GeoJSON FeatureCollection and build a GeoDataset.

    Raises ParseFailure for anything that is not a feature collection.
    """
    if not isinstance(document, dict):
        raise ParseFailure(f"Expected a GeoJSON object, got {type(document).__name__}")
    if document.get("type") != "FeatureCollection":
        raise ParseFailure(f"Expected a FeatureCollection, got type={document.get('type')!r}")
    features = document.get("features")
    if not isinstance(features, list):
        raise ParseFailure("FeatureCollection has no 'features' list")
    try:
        return GeoDataset(name=name, features=tuple(features))
    except ValidationError as e:
        raise ParseFailure(f"Malformed feature in '{name}': {e.error_count()} error(s)") from e
