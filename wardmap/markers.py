"""Report markers: category colors, viewport culling and selection dispatch."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from loguru import logger

from .geometry import haversine_distance_km, point_in_bounds
from .models import LatLng, Marker, Report, ViewportBounds

REPORT_CATEGORIES = {
    "water": "Water & Sanitation",
    "electricity": "Electricity",
    "roads": "Roads & Transport",
    "waste": "Waste Management",
    "safety": "Safety & Security",
    "other": "Other",
}

REPORT_STATUSES = {
    "pending": "Pending",
    "acknowledged": "Acknowledged",
    "in_progress": "In Progress",
    "resolved": "Resolved",
}

CATEGORY_COLORS = {
    "water": "#2196F3",
    "electricity": "#FFC107",
    "roads": "#FF5722",
    "waste": "#4CAF50",
    "safety": "#F44336",
}
DEFAULT_MARKER_COLOR = "#9E9E9E"


def marker_color(category: str | None) -> str:
    return CATEGORY_COLORS.get(category or "", DEFAULT_MARKER_COLOR)


def build_markers(reports: Iterable[Report]) -> list[Marker]:
    """One marker per report; the report itself is the selection payload."""
    return [
        Marker(
            id=r.id,
            coordinate=LatLng(latitude=r.lat, longitude=r.lng),
            title=r.title,
            description=r.description,
            color=marker_color(r.category),
            payload=r,
        )
        for r in reports
    ]


def nearest_markers(markers: Iterable[Marker], point: LatLng,
                    radius_km: float) -> list[tuple[Marker, float]]:
    """Markers within ``radius_km`` of ``point``, closest first, with distances."""
    hits = []
    for m in markers:
        d = haversine_distance_km(point, m.coordinate)
        if d <= radius_km:
            hits.append((m, d))
    hits.sort(key=lambda hit: hit[1])
    return hits


class MarkerLayer:
    """The markers currently on the map and what to do when one is tapped."""

    def __init__(self, markers: Iterable[Marker],
                 on_select: Callable[[Any], None] | None = None):
        self.markers = list(markers)
        self._by_id = {m.id: m for m in self.markers}
        self.on_select = on_select

    def visible(self, bounds: ViewportBounds | None) -> list[Marker]:
        return [m for m in self.markers if point_in_bounds(m.coordinate, bounds)]

    def select(self, marker_id) -> bool:
        """Dispatch the payload of ``marker_id``; False if unknown or no handler."""
        marker = self._by_id.get(marker_id)
        if marker is None:
            logger.warning(f"Selected unknown marker {marker_id!r}")
            return False
        if self.on_select is None:
            return False
        self.on_select(marker.payload)
        return True
