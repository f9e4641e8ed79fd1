"""Per-kiosk sliding window rate limiter."""

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

UNKNOWN_KIOSK = "unknown"


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check."""

    allowed: bool
    key: str
    remaining: int
    retry_after: float = 0.0


class RateLimiter:
    """Admit at most ``max_requests`` per key within a trailing window.

    Only admitted requests are recorded, so a rejected burst does not extend
    the wait. Keys whose window empties out are dropped, and every key is
    swept at least once per window so one-off keys do not accumulate.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def _prune(self, key: str, now: float) -> deque[float] | None:
        window = self._windows.get(key)
        if window is None:
            return None
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        if not window:
            del self._windows[key]
            return None
        return window

    def check(self, key: str | None) -> RateLimitDecision:
        """Record and admit a request for ``key``, or refuse it."""
        key = key or UNKNOWN_KIOSK
        now = self._clock()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        window = self._prune(key, now)

        if window is not None and len(window) >= self.max_requests:
            retry_after = max(0.0, window[0] + self.window_seconds - now)
            logger.warning(
                "Rate limit exceeded",
                kiosk_id=key,
                limit=self.max_requests,
                retry_after=round(retry_after, 1),
            )
            return RateLimitDecision(
                allowed=False, key=key, remaining=0, retry_after=retry_after
            )

        if window is None:
            window = self._windows[key] = deque()
        window.append(now)
        return RateLimitDecision(
            allowed=True, key=key, remaining=self.max_requests - len(window)
        )

    def _sweep(self, now: float) -> int:
        before = len(self._windows)
        for key in list(self._windows):
            self._prune(key, now)
        self._last_sweep = now
        removed = before - len(self._windows)
        if removed:
            logger.debug(
                "Pruned idle rate limit keys", removed=removed, tracked=len(self._windows)
            )
        return removed

    def prune(self) -> int:
        """Drop expired timestamps for every key.

        Returns:
            Number of keys removed
        """
        return self._sweep(self._clock())

    def tracked_keys(self) -> list[str]:
        """Keys with requests still inside the window."""
        self.prune()
        return list(self._windows)

    def reset(self) -> None:
        self._windows.clear()
