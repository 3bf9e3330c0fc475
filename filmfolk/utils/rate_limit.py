"""
Fixed-window, in-memory rate limiting keyed by an arbitrary string
(the client IP in practice).

Counters live in process memory and are guarded by one lock; a hit never
blocks waiting for a window to open.
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset: int  # unix timestamp when the current window ends
    retry_after: int  # seconds until reset, measured on the limiter clock


class _Window:
    __slots__ = ("count", "started")

    def __init__(self, started: float):
        self.count = 0
        self.started = started


class FixedWindowRateLimiter:
    def __init__(self, limit: int, window_seconds: int = 60, clock: Callable[[], float] = time.time):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, _Window] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitResult:
        """Count one request for key and report whether it is within the limit."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)
            if window is None or now - window.started >= self.window_seconds:
                window = _Window(now)
                self._windows[key] = window
            window.count += 1
            reset = int(window.started + self.window_seconds)
            remaining = max(0, self.limit - window.count)
            retry_after = max(0, math.ceil(window.started + self.window_seconds - now))
            return RateLimitResult(window.count <= self.limit, self.limit, remaining, reset, retry_after)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        # Drop expired windows once per window length; caller holds the lock
        if now - self._last_sweep < self.window_seconds:
            return
        stale = [k for k, w in self._windows.items() if now - w.started >= self.window_seconds]
        for k in stale:
            del self._windows[k]
        self._last_sweep = now
