"""
Fixed-window request rate limiting.

Counts requests per client key inside a window; the first request after
a window elapses opens a fresh one.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple


@dataclass
class RateLimitState:
    """Outcome of counting one request."""
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the window resets

    @property
    def reset_seconds(self) -> int:
        return max(0, math.ceil(self.reset_after))


class FixedWindowRateLimiter:
    """In-memory fixed-window limiter keyed by client identifier."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize limiter.

        Args:
            max_requests: Requests admitted per key per window
            window_seconds: Window length in seconds
            clock: Monotonic time source
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune = clock()

    def hit(self, key: str) -> RateLimitState:
        """Count one request for ``key`` and report whether it is admitted."""
        now = self._clock()
        self._prune(now)

        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[key] = (window_start, count)

        return RateLimitState(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=window_start + self.window_seconds - now,
        )

    def _prune(self, now: float) -> None:
        """Drop expired windows, at most once per window length."""
        if now - self._last_prune < self.window_seconds:
            return
        self._last_prune = now
        expired = [
            key
            for key, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
