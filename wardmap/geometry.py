"""Geometry helpers: bounds tests, simplification, distances, viewport culling."""

from __future__ import annotations

import math
from typing import Iterator

from loguru import logger
from shapely.geometry import mapping, shape

from .errors import SimplificationFailure
from .models import Feature, GeoDataset, Geometry, LatLng, ViewportBounds

EARTH_RADIUS_KM = 6371


def _in_bounds(latitude: float, longitude: float, bounds: ViewportBounds) -> bool:
    return (
        bounds.south_west.latitude <= latitude <= bounds.north_east.latitude
        and bounds.south_west.longitude <= longitude <= bounds.north_east.longitude
    )


def point_in_bounds(point: LatLng | None, bounds: ViewportBounds | None) -> bool:
    """Inclusive bounds test. Missing bounds or a missing point both pass."""
    if bounds is None or point is None:
        return True
    return _in_bounds(point.latitude, point.longitude, bounds)


def geometry_vertices(geometry: Geometry | None) -> Iterator[tuple[float, float]]:
    """Yield every (lon, lat) position of a geometry, ring by ring."""
    if geometry is None or not geometry.coordinates:
        return
    stack = [geometry.coordinates]
    while stack:
        coords = stack.pop()
        if not coords:
            continue
        if isinstance(coords[0], (int, float)):
            yield coords[0], coords[1]
        else:
            stack.extend(reversed(coords))


def dataset_vertex_count(dataset: GeoDataset) -> int:
    return sum(1 for f in dataset.features for _ in geometry_vertices(f.geometry))


def _simplify_feature(feature: Feature, tolerance: float,
                      preserve_topology: bool) -> Feature:
    geom = feature.geometry
    if geom is None or not geom.is_polygonal or not geom.coordinates:
        return feature
    simplified = shape(geom.to_geojson()).simplify(
        tolerance, preserve_topology=preserve_topology
    )
    if simplified.is_empty:
        raise SimplificationFailure(
            f"Feature {feature.id!r} collapsed to an empty geometry"
        )
    return feature.model_copy(update={"geometry": Geometry(**mapping(simplified))})


def simplify_dataset(dataset: GeoDataset, tolerance: float,
                     preserve_topology: bool = True) -> GeoDataset:
    """Reduce the vertex count of every polygon ring in the dataset.

    Non-polygon features pass through unchanged. Any failure returns the
    original dataset: an unsimplified map is better than no map.
    """
    try:
        features = [
            _simplify_feature(f, tolerance, preserve_topology)
            for f in dataset.features
        ]
    except Exception as e:
        logger.warning(f"Failed to simplify '{dataset.name}', using raw geometry: {e}")
        return dataset

    simplified = dataset.with_features(features)
    logger.debug(
        f"Simplified '{dataset.name}' at tolerance {tolerance}: "
        f"{dataset_vertex_count(dataset)} -> {dataset_vertex_count(simplified)} vertices"
    )
    return simplified


def filter_by_bounds(dataset: GeoDataset, bounds: ViewportBounds | None) -> GeoDataset:
    """Keep features with at least one vertex inside the bounds.

    A polygon that covers the whole viewport without any vertex inside it
    is dropped; a huge polygon with a single vertex inside is kept.
    """
    if bounds is None:
        return dataset
    kept = [
        f for f in dataset.features
        if any(_in_bounds(lat, lon, bounds) for lon, lat in geometry_vertices(f.geometry))
    ]
    return dataset.with_features(kept)


def haversine_distance_km(p1: LatLng, p2: LatLng) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(p2.latitude - p1.latitude)
    d_lon = math.radians(p2.longitude - p1.longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(p1.latitude))
        * math.cos(math.radians(p2.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    a = min(1.0, a)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
