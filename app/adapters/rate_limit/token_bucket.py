"""Per-client token bucket with lazy, whole-interval refill.

Notes:
- Tokens are only added in whole refill intervals; the refill timestamp
  advances only when at least one token was added, so partial intervals
  carry over to the next call instead of being lost.
- Thread-safe: every read or write of the counters happens under the
  bucket's own lock.
- Clocks return integer nanoseconds (``time.monotonic_ns`` by default) so
  interval arithmetic is exact.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

# 100 tokens of burst, refilled at one token per 100ms (10 tokens/s)
RATE_LIMIT_CAPACITY = 100
RATE_LIMIT_REFILL_INTERVAL_SECONDS = 0.1

NS_PER_SECOND = 1_000_000_000

Clock = Callable[[], int]


class TokenBucket:
    """A capped pool of permits for one client key.

    The bucket starts full, so a new client may burst up to ``capacity``
    requests immediately.
    """

    def __init__(
        self,
        *,
        capacity: int = RATE_LIMIT_CAPACITY,
        refill_interval_seconds: float = RATE_LIMIT_REFILL_INTERVAL_SECONDS,
        clock: Clock = time.monotonic_ns,
    ) -> None:
        """Initialize a full bucket.

        Args:
            capacity: Maximum number of tokens the bucket holds.
            refill_interval_seconds: Time needed to earn one token.
            clock: Monotonic time source returning nanoseconds.

        Raises:
            ValueError: If capacity or refill interval are invalid.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if refill_interval_seconds <= 0:
            raise ValueError("refill_interval_seconds must be > 0")

        self._capacity = capacity
        self._refill_interval_ns = round(refill_interval_seconds * NS_PER_SECOND)
        self._clock = clock
        self._lock = threading.Lock()

        now = clock()
        self._tokens = capacity
        self._last_refill_ns = now
        self._last_access_ns = now

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def tokens(self) -> int:
        """Tokens currently in the bucket, without applying a refill."""
        with self._lock:
            return self._tokens

    @property
    def last_access_ns(self) -> int:
        with self._lock:
            return self._last_access_ns

    def allow(self) -> bool:
        """Take one token if available.

        Refill, check and decrement happen atomically with respect to other
        callers on the same bucket. The access time is refreshed whether or
        not a token was granted.

        Returns:
            True if a token was consumed, False if the bucket is empty.
        """
        with self._lock:
            now = self._clock()
            self._last_access_ns = now
            self._refill_locked(now)

            if self._tokens > 0:
                self._tokens -= 1
                return True
            return False

    def idle_for_ns(self, now: int) -> int:
        """Nanoseconds since the last ``allow`` call, read under the bucket lock."""
        with self._lock:
            return now - self._last_access_ns

    def _refill_locked(self, now: int) -> None:
        elapsed = now - self._last_refill_ns
        if elapsed <= 0:
            # Clock did not move forward; never refill into the past
            return

        tokens_to_add = elapsed // self._refill_interval_ns
        if tokens_to_add > 0:
            self._tokens = min(self._capacity, self._tokens + tokens_to_add)
            self._last_refill_ns = now
