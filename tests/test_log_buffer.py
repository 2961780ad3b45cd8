"""
Tests for the in-memory engine log.

These tests verify:
1. Append-only ordering and capture-time timestamps
2. Reading never evicts; clear drops everything at once
3. Listeners and the periodic auto-clear
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from erwin_guesser.engine.log_buffer import LogBuffer
from erwin_guesser.engine.models import LogEntry


T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Returns T0, T0+1s, T0+2s, ..."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        value = T0 + timedelta(seconds=self.calls)
        self.calls += 1
        return value


# =============================================================================
# APPEND / DRAIN TESTS
# =============================================================================

class TestAppendAndDrain:
    """Test the append-only sequence."""

    def test_entries_keep_order_and_timestamps(self):
        log = LogBuffer(clock=StepClock())

        log.append("first")
        log.append("second")

        entries = log.drain()
        assert [e.message for e in entries] == ["first", "second"]
        assert entries[0].timestamp == T0
        assert entries[1].timestamp == T0 + timedelta(seconds=1)

    def test_drain_does_not_remove(self):
        """Reading is a snapshot; only clear() discards."""
        log = LogBuffer()
        log.append("a")

        log.drain()

        assert len(log) == 1

    def test_drain_returns_immutable_snapshot(self):
        log = LogBuffer()
        log.append("a")
        snapshot = log.drain()

        log.append("b")

        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_no_size_based_eviction(self):
        """Thousands of entries stay until the next clear."""
        log = LogBuffer()
        for i in range(5000):
            log.append(f"msg {i}")

        assert len(log) == 5000
        assert log.drain()[0].message == "msg 0"

    def test_concurrent_appends_are_not_lost(self):
        log = LogBuffer()

        def writer():
            for i in range(500):
                log.append(str(i))

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(log) == 2000

    def test_entry_format(self):
        entry = LogEntry(timestamp=T0, message="Guesses accepted")

        assert entry.format() == "2024-06-01T12:00:00.000+00:00 Guesses accepted"


# =============================================================================
# CLEAR TESTS
# =============================================================================

class TestClear:
    """Test bulk clearing."""

    def test_clear_discards_everything(self):
        log = LogBuffer()
        log.append("a")
        log.append("b")

        dropped = log.clear()

        assert dropped == 2
        assert log.drain() == ()

    def test_append_after_clear(self):
        log = LogBuffer()
        log.append("old")
        log.clear()

        log.append("new")

        assert [e.message for e in log.drain()] == ["new"]

    def test_auto_clear_runs_each_window(self):
        """Left alone, the buffer is cleared once per window."""
        log = LogBuffer()
        clears = []
        log.subscribe_clear(lambda: clears.append(len(clears)))

        async def scenario():
            log.append("stale")
            task = asyncio.create_task(log.run_auto_clear(window_s=0.01))
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert len(clears) >= 2
        assert len(log) == 0

    def test_auto_clear_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            asyncio.run(LogBuffer().run_auto_clear(window_s=0))


# =============================================================================
# LISTENER TESTS
# =============================================================================

class TestListeners:
    """Test append and clear notifications."""

    def test_listener_receives_entries(self):
        log = LogBuffer()
        seen = []
        log.subscribe(seen.append)

        entry = log.append("hello")

        assert seen == [entry]

    def test_unsubscribe_stops_notifications(self):
        log = LogBuffer()
        seen = []
        unsubscribe = log.subscribe(seen.append)

        unsubscribe()
        log.append("hello")

        assert seen == []

    def test_clear_listener(self):
        log = LogBuffer()
        calls = []
        log.subscribe_clear(lambda: calls.append(True))

        log.clear()

        assert calls == [True]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
