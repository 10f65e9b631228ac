"""Periodic timer driven by an asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional


class AsyncioTicker:
    """Fires ``callback`` every ``interval_sec`` on the given loop.

    Ticks are scheduled against the loop clock from the first start instant,
    so a slow callback does not push later ticks back. ``cancel`` takes effect
    immediately: no callback runs after it returns.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._callback: Callable[[], None] | None = None
        self._interval_sec = 1.0
        self._next_at = 0.0

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, interval_sec: float, callback: Callable[[], None]) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be > 0")
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._callback = callback
        self._interval_sec = interval_sec
        self._next_at = loop.time() + interval_sec
        self._handle = loop.call_at(self._next_at, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def _fire(self) -> None:
        callback = self._callback
        if callback is None or self._loop is None:
            return
        now = self._loop.time()
        self._next_at += self._interval_sec
        if self._next_at <= now:
            # The loop stalled for more than one interval; skip missed ticks.
            self._next_at = now + self._interval_sec
        self._handle = self._loop.call_at(self._next_at, self._fire)
        callback()
