"""
Tick clocks.

A driving loop samples its clock exactly once per tick and hands the value
to :meth:`RealtimeAnalyzer.process`.  Times are milliseconds.
"""

import time


class MonotonicClock:
    """Milliseconds from ``time.monotonic()`` relative to construction."""

    def __init__(self):
        self._origin = time.monotonic()

    def now(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0


class TickClock:
    """
    Deterministic clock advancing a fixed step per call.

    The first call returns ``start_ms``; every following call adds
    ``tick_ms``.  Used for offline rendering and reproducible tests.
    """

    def __init__(self, tick_ms: float, start_ms: float = 0.0):
        self.tick_ms = tick_ms
        self.start_ms = start_ms
        self._ticks = 0

    def now(self) -> float:
        value = self.start_ms + self._ticks * self.tick_ms
        self._ticks += 1
        return value

    def reset(self) -> None:
        self._ticks = 0
