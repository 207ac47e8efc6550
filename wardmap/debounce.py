"""Coalesce bursts of calls into one trailing call on the asyncio loop."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from loguru import logger


class Debouncer:
    """Callable wrapper that runs ``fn`` once a burst of calls has settled.

    Every call cancels the pending timer and schedules a new one
    ``wait_ms`` later with the latest arguments. Calls return nothing.
    Must be called from a running event loop (or with ``loop`` given).
    """

    def __init__(self, fn: Callable[..., Any], wait_ms: float,
                 loop: asyncio.AbstractEventLoop | None = None):
        self._fn = fn
        self._wait_s = wait_ms / 1000
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args, **kwargs) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._wait_s, self._fire, args, kwargs)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple, kwargs: dict) -> None:
        self._handle = None
        try:
            result = self._fn(*args, **kwargs)
        except Exception:
            logger.exception(f"Debounced call to {self._fn!r} failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error(
                f"Debounced coroutine {self._fn!r} failed"
            )


def debounce(fn: Callable[..., Any], wait_ms: float) -> Debouncer:
    """Wrap ``fn`` so it only runs ``wait_ms`` after the last call in a burst."""
    return Debouncer(fn, wait_ms)
