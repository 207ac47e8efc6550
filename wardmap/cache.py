"""Versioned, time-expiring cache of one named GeoDataset."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable

from loguru import logger
from pydantic import ValidationError

from .errors import CacheCorruption
from .models import CacheEntry, GeoDataset
from .store import KeyValueStore

DEFAULT_EXPIRY = timedelta(hours=24)


class GeoCache:
    """Stores a dataset under ``key`` in a KeyValueStore.

    Entries older than ``expiry`` or written with another ``version`` are
    treated as absent and evicted on read. Entries that cannot be decoded
    are evicted too; they never reach the caller as errors.
    """

    def __init__(self, store: KeyValueStore, key: str, version: str = "1",
                 expiry: timedelta = DEFAULT_EXPIRY,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.key = key
        self.version = version
        self.expiry = expiry
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def decode(raw: str) -> CacheEntry:
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            raise CacheCorruption(f"Unreadable cache entry: {e.error_count()} error(s)") from e

    async def get(self) -> GeoDataset | None:
        try:
            raw = await self.store.read(self.key)
        except OSError as e:
            logger.warning(f"Failed to read cache '{self.key}': {e}")
            return None
        except ValueError as e:
            # undecodable bytes on disk, e.g. UnicodeDecodeError
            logger.warning(f"Discarding unreadable cache '{self.key}': {e}")
            await self._evict()
            return None
        if raw is None:
            return None

        try:
            entry = self.decode(raw)
        except CacheCorruption as e:
            logger.warning(f"Discarding cache '{self.key}': {e}")
            await self._evict()
            return None

        if entry.version != self.version:
            logger.info(f"Cache '{self.key}' has version {entry.version}, "
                        f"expected {self.version}; discarding")
            await self._evict()
            return None

        age_ms = self._now_ms() - entry.timestamp
        if age_ms > self.expiry.total_seconds() * 1000:
            logger.info(f"Cache '{self.key}' expired ({age_ms / 3_600_000:.1f}h old)")
            await self._evict()
            return None

        return entry.data

    async def put(self, dataset: GeoDataset) -> None:
        entry = CacheEntry(version=self.version, timestamp=self._now_ms(), data=dataset)
        await self.store.write(self.key, entry.model_dump_json())
        logger.debug(f"Cached '{dataset.name}' under '{self.key}'")

    async def invalidate(self) -> None:
        await self.store.remove(self.key)

    async def _evict(self) -> None:
        try:
            await self.store.remove(self.key)
        except OSError as e:
            logger.warning(f"Failed to evict cache '{self.key}': {e}")
