"""Map viewport events -> debounced bounds updates on the controller."""

from __future__ import annotations

from loguru import logger

from .config import ViewportConfig
from .controller import GeoDataController
from .debounce import Debouncer
from .models import Region


class MapViewportAdapter:
    """Feeds settled map regions to a GeoDataController.

    A pan or zoom gesture emits many region events; only the last one in
    each ``settle_ms`` window is converted to bounds and forwarded.
    """

    def __init__(self, controller: GeoDataController, settle_ms: int = 300):
        self.controller = controller
        self._debounced = Debouncer(self._apply, settle_ms)
        self.current_region: Region | None = None

    @classmethod
    def from_config(cls, controller: GeoDataController,
                    config: ViewportConfig) -> MapViewportAdapter:
        adapter = cls(controller, settle_ms=config.settle_ms)
        adapter.current_region = Region(
            latitude=config.initial_latitude,
            longitude=config.initial_longitude,
            latitude_delta=config.initial_latitude_delta,
            longitude_delta=config.initial_longitude_delta,
        )
        return adapter

    @property
    def pending(self) -> bool:
        return self._debounced.pending

    def on_region_change_complete(self, region: Region) -> None:
        """Handler for the map widget's region-change event."""
        self._debounced(region)

    def close(self) -> None:
        self._debounced.cancel()

    def _apply(self, region: Region) -> None:
        self.current_region = region
        bounds = region.to_bounds()
        logger.debug(
            f"Viewport settled: SW ({bounds.south_west.latitude:.4f}, "
            f"{bounds.south_west.longitude:.4f}) NE ({bounds.north_east.latitude:.4f}, "
            f"{bounds.north_east.longitude:.4f})"
        )
        self.controller.set_viewport(bounds)
