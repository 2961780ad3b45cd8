"""Fixed-interval refresher for display data.

Runs one fetch coroutine immediately and then every ``interval_s`` seconds
(15 minutes by default), keeping the most recent successful result. A failed
fetch is logged and the previous value stays visible. The poller shares
nothing with the guessing engine.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from erwin_guesser.config import STATS_POLL_INTERVAL_S
from erwin_guesser.errors import StatsApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatsPoller(Generic[T]):
    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        interval_s: float = STATS_POLL_INTERVAL_S,
        on_update: Optional[Callable[[T], None]] = None,
        name: str = "stats",
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._fetch = fetch
        self._interval_s = interval_s
        self._on_update = on_update
        self._name = name
        self._lock = threading.Lock()
        self._latest: Optional[T] = None
        self._failures = 0

    @property
    def latest(self) -> Optional[T]:
        with self._lock:
            return self._latest

    @property
    def failures(self) -> int:
        return self._failures

    async def refresh(self) -> Optional[T]:
        """Fetch once. Returns the new value, or None if the fetch failed."""
        try:
            value = await self._fetch()
        except StatsApiError as exc:
            self._failures += 1
            logger.warning("Refreshing %s failed: %s", self._name, exc)
            return None
        with self._lock:
            self._latest = value
        if self._on_update is not None:
            self._on_update(value)
        return value

    async def run(self) -> None:
        """Refresh now and then once per interval until cancelled."""
        while True:
            await self.refresh()
            await asyncio.sleep(self._interval_s)
