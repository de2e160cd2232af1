"""Rate limiting and backoff utilities for API calls."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Minimum-interval rate limiter shared by every caller holding it.

    Callers reserve the next free slot under a lock and sleep outside of it,
    so concurrent workers are spaced by at least ``1 / rate_per_second``.
    """

    def __init__(self, rate_per_second: float):
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self.min_interval = 1.0 / rate_per_second
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def acquire(self) -> float:
        """Block until the caller may issue a call.

        Returns:
            Seconds spent waiting
        """
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
        wait = slot - now
        if wait > 0:
            time.sleep(wait)
        return wait


def exponential_backoff(attempt: int, base: float, maximum: float, factor: float = 2.0) -> float:
    """Delay for the given zero-based attempt, capped at ``maximum``.

    Exponential backoff: base, base*2, base*4, ... up to maximum.
    """
    if attempt < 0:
        attempt = 0
    # Cap the exponent so huge attempt counts do not overflow
    delay = base * (factor ** min(attempt, 32))
    return min(delay, maximum)


def is_rate_limit_status(status_code: int | None, message: str = "") -> bool:
    """Check whether an HTTP status denotes rate limiting."""
    return status_code == 429 or (status_code == 503 and "rate limit" in message.lower())
