"""In-memory engine log shown to the user.

Append-only list of timestamped messages. Nothing is evicted individually:
the whole buffer is cleared at once, either on demand ("clear logs") or by
``run_auto_clear`` once per window (one hour by default). Nothing is written
to disk; the buffer lives as long as the process.

Safe for one writer (the loop controller) and any number of readers on
other threads.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from erwin_guesser.engine.models import LogEntry

logger = logging.getLogger(__name__)

DEFAULT_CLEAR_WINDOW_S = 3600.0

EntryListener = Callable[[LogEntry], None]
ClearListener = Callable[[], None]


class LogBuffer:
    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._entries: list[LogEntry] = []
        self._entry_listeners: list[EntryListener] = []
        self._clear_listeners: list[ClearListener] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, message: str) -> LogEntry:
        entry = LogEntry(timestamp=self._clock(), message=message)
        with self._lock:
            self._entries.append(entry)
            listeners = list(self._entry_listeners)
        for listener in listeners:
            listener(entry)
        return entry

    def drain(self) -> tuple[LogEntry, ...]:
        """Ordered snapshot of the current entries, oldest first.

        Reading does not remove anything; only ``clear`` does.
        """
        with self._lock:
            return tuple(self._entries)

    def clear(self) -> int:
        """Discard every entry in one step. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries = []
            listeners = list(self._clear_listeners)
        for listener in listeners:
            listener()
        logger.debug("Cleared %d log entries", dropped)
        return dropped

    def subscribe(self, listener: EntryListener) -> Callable[[], None]:
        """Call ``listener`` with every new entry. Returns an unsubscribe function."""
        with self._lock:
            self._entry_listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._entry_listeners:
                    self._entry_listeners.remove(listener)

        return _unsubscribe

    def subscribe_clear(self, listener: ClearListener) -> Callable[[], None]:
        with self._lock:
            self._clear_listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._clear_listeners:
                    self._clear_listeners.remove(listener)

        return _unsubscribe

    async def run_auto_clear(self, window_s: float = DEFAULT_CLEAR_WINDOW_S) -> None:
        """Clear the buffer once per ``window_s`` until cancelled."""
        if window_s <= 0:
            raise ValueError(f"window_s must be positive, got {window_s}")
        while True:
            await asyncio.sleep(window_s)
            dropped = self.clear()
            logger.info("Scheduled log clear dropped %d entries", dropped)
