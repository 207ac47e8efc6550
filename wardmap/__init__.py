"""wardmap: ward boundary map data with caching, simplification and viewport culling."""

from .config import MapDataConfig
from .controller import ControllerSnapshot, GeoDataController, LoadState
from .viewport import MapViewportAdapter

__all__ = [
    "ControllerSnapshot",
    "GeoDataController",
    "LoadState",
    "MapDataConfig",
    "MapViewportAdapter",
]
