"""Orchestrator: cache -> fetch -> simplify -> store -> viewport-filtered view."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from loguru import logger

from .cache import GeoCache
from .config import MapDataConfig
from .errors import MapDataError
from .geometry import filter_by_bounds, simplify_dataset
from .models import GeoDataset, ViewportBounds, parse_feature_collection
from .provider import DatasetProvider, HttpMapDataProvider
from .store import FileKeyValueStore, KeyValueStore


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ControllerSnapshot:
    state: LoadState
    error: str | None
    dataset: GeoDataset | None
    viewport: ViewportBounds | None

    @property
    def loading(self) -> bool:
        return self.state is LoadState.LOADING


Subscriber = Callable[[ControllerSnapshot], None]


class GeoDataController:
    """Loads one dataset and tells subscribers about every state change.

    ``load()`` while a load is running does nothing. ``refresh()`` drops
    the cache entry and starts a new load regardless; each load carries a
    request id, and results from a superseded load are thrown away.
    """

    def __init__(self, provider: DatasetProvider, cache: GeoCache,
                 dataset_name: str = "wards", tolerance: float = 0.002,
                 preserve_topology: bool = True):
        self.provider = provider
        self.cache = cache
        self.dataset_name = dataset_name
        self.tolerance = tolerance
        self.preserve_topology = preserve_topology

        self._state = LoadState.IDLE
        self._error: str | None = None
        self._dataset: GeoDataset | None = None
        self._viewport: ViewportBounds | None = None
        self._request_id = 0
        self._subscribers: list[Subscriber] = []
        self._cache_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: MapDataConfig,
                    provider: DatasetProvider | None = None,
                    store: KeyValueStore | None = None) -> GeoDataController:
        """Wire a controller from settings, defaulting to HTTP + file cache."""
        provider = provider or HttpMapDataProvider(config.provider)
        store = store or FileKeyValueStore(config.cache.directory)
        cache = GeoCache(store, config.cache.key, version=config.cache.version,
                         expiry=config.cache.expiry)
        return cls(provider, cache, dataset_name=config.dataset_name,
                   tolerance=config.simplify.tolerance,
                   preserve_topology=config.simplify.preserve_topology)

    # --- State ---

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def viewport(self) -> ViewportBounds | None:
        return self._viewport

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(self._state, self._error, self._dataset, self._viewport)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for state changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snap)
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed")

    # --- Loading ---

    async def load(self) -> None:
        if self._state is LoadState.LOADING:
            logger.debug(f"Load of '{self.dataset_name}' already in flight")
            return
        await self._run(self._begin())

    async def refresh(self) -> None:
        await self._run(self._begin(), invalidate=True)

    def _begin(self) -> int:
        self._request_id += 1
        self._state = LoadState.LOADING
        self._error = None
        self._notify()
        return self._request_id

    def _is_stale(self, request_id: int) -> bool:
        return request_id != self._request_id

    async def _run(self, request_id: int, invalidate: bool = False) -> None:
        """Run one load; every exit leaves the state READY or FAILED."""
        try:
            await self._load(request_id, invalidate)
        except MapDataError as e:
            self._fail(request_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error loading '{self.dataset_name}'")
            self._fail(request_id, f"Unexpected error: {e}")

    async def _load(self, request_id: int, invalidate: bool) -> None:
        if invalidate:
            # waits for an in-flight write so it cannot land after the removal
            async with self._cache_lock:
                try:
                    await self.cache.invalidate()
                except OSError as e:
                    logger.warning(f"Failed to invalidate cache '{self.cache.key}': {e}")

        cached = await self.cache.get()
        if cached is not None:
            logger.info(f"Using cached '{self.dataset_name}' ({len(cached.features)} features)")
            self._publish(request_id, cached)
            return

        raw = await self.provider.fetch_raw_dataset()
        parsed = parse_feature_collection(raw, self.dataset_name)
        if self._is_stale(request_id):
            logger.debug(f"Discarding superseded load #{request_id}")
            return

        simplified = await asyncio.to_thread(
            simplify_dataset, parsed, self.tolerance, self.preserve_topology
        )
        async with self._cache_lock:
            # only the current request may write
            if self._is_stale(request_id):
                logger.debug(f"Discarding superseded load #{request_id}")
                return
            try:
                await self.cache.put(simplified)
            except OSError as e:
                logger.warning(f"Failed to cache '{self.dataset_name}': {e}")
        self._publish(request_id, simplified)

    def _publish(self, request_id: int, dataset: GeoDataset) -> None:
        if self._is_stale(request_id):
            logger.debug(f"Discarding superseded load #{request_id}")
            return
        self._dataset = dataset
        self._state = LoadState.READY
        self._error = None
        logger.info(f"'{self.dataset_name}' ready: {len(dataset.features)} features")
        self._notify()

    def _fail(self, request_id: int, message: str) -> None:
        if self._is_stale(request_id):
            logger.debug(f"Discarding failure of superseded load #{request_id}: {message}")
            return
        self._dataset = None
        self._state = LoadState.FAILED
        self._error = message
        logger.error(f"Failed to load '{self.dataset_name}': {message}")
        self._notify()

    # --- Views ---

    def current_view(self, bounds: ViewportBounds | None = None) -> GeoDataset | None:
        """Dataset restricted to ``bounds``; unfiltered when not ready or no bounds."""
        if self._dataset is None:
            return None
        if bounds is None or self._state is not LoadState.READY:
            return self._dataset
        return filter_by_bounds(self._dataset, bounds)

    def set_viewport(self, bounds: ViewportBounds | None) -> None:
        self._viewport = bounds
        self._notify()

    def visible(self) -> GeoDataset | None:
        return self.current_view(self._viewport)
