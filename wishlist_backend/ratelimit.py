"""Per-caller sliding-window rate limiter for the HTTP layer.

The limiter is an explicit object injected into the app (``app.state``)
rather than a module-level map, so tests and each process get their own
state.  It is in-memory only; limits are per process.  Keys whose calls
have all aged out of the window are swept at most once per window, so memory
tracks the callers active in the last window rather than every caller seen.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """The caller made too many requests in the current window."""

    def __init__(self, key: str, retry_after: float) -> None:
        super().__init__(f"Rate limit exceeded for {key}. Please wait a moment.")
        self.key = key
        self.retry_after = retry_after


class SlidingWindowRateLimiter:
    """Allow at most ``max_calls`` per ``window`` seconds for each key."""

    def __init__(
        self,
        max_calls: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self.max_calls = max_calls
        self.window = window
        self._clock = clock
        self._calls: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _evict(self, calls: Deque[float], now: float) -> None:
        while calls and now - calls[0] >= self.window:
            calls.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._calls):
            calls = self._calls[key]
            self._evict(calls, now)
            if not calls:
                del self._calls[key]
        self._last_sweep = now

    def allow(self, key: str) -> bool:
        """Record a call for *key* and return whether it is within the limit."""
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.window:
                self._sweep(now)
            calls = self._calls.setdefault(key, deque())
            self._evict(calls, now)
            if len(calls) >= self.max_calls:
                logger.warning("Rate limited %s", key)
                return False
            calls.append(now)
            return True

    def check(self, key: str) -> None:
        """Like :meth:`allow` but raises :class:`RateLimitExceeded` when limited."""
        if not self.allow(key):
            raise RateLimitExceeded(key, self.retry_after(key))

    def retry_after(self, key: str) -> float:
        """Seconds until *key* may call again (0 when it already may)."""
        with self._lock:
            calls = self._calls.get(key)
            if not calls or len(calls) < self.max_calls:
                return 0.0
            return max(0.0, self.window - (self._clock() - calls[0]))

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
