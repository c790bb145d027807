"""In-memory registry of token buckets keyed by client address.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- The key -> bucket map sits behind a read/write lock: lookups share the
  read side, creation and sweeping take the write side.
- Each bucket keeps its own lock, so unrelated clients never contend on
  token accounting.
"""

from __future__ import annotations

import logging
import time

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.token_bucket import (
    NS_PER_SECOND,
    RATE_LIMIT_CAPACITY,
    RATE_LIMIT_REFILL_INTERVAL_SECONDS,
    Clock,
    TokenBucket,
)
from app.utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

# Buckets idle for longer than this are dropped by the sweep
LIMITER_TTL_SECONDS = 30 * 60


class LimiterRegistry(AbstractRateLimiter):
    """Owns one ``TokenBucket`` per client key.

    Buckets are created lazily on first access and live until a sweep finds
    them idle for more than ``ttl_seconds``.
    """

    def __init__(
        self,
        *,
        capacity: int = RATE_LIMIT_CAPACITY,
        refill_interval_seconds: float = RATE_LIMIT_REFILL_INTERVAL_SECONDS,
        ttl_seconds: float = LIMITER_TTL_SECONDS,
        clock: Clock = time.monotonic_ns,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        self._capacity = capacity
        self._refill_interval_seconds = refill_interval_seconds
        self._ttl_ns = round(ttl_seconds * NS_PER_SECOND)
        self._clock = clock
        self._lock = ReadWriteLock()
        self._buckets: dict[str, TokenBucket] = {}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        with self._lock.read():
            return key in self._buckets

    def get_or_create(self, key: str) -> TokenBucket:
        """Return the bucket for ``key``, creating it on first access.

        Concurrent first accesses for the same key all receive the same
        bucket: creation re-checks the map under the write lock and keeps
        whichever bucket got there first.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock.read():
            bucket = self._buckets.get(key)
        if bucket is not None:
            return bucket

        with self._lock.write():
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(
                    capacity=self._capacity,
                    refill_interval_seconds=self._refill_interval_seconds,
                    clock=self._clock,
                )
                self._buckets[key] = bucket
            return bucket

    def allow(self, key: str) -> bool:
        return self.get_or_create(key).allow()

    def sweep(self) -> int:
        """Remove buckets whose last access is older than the TTL.

        The write lock is held for the whole pass and each bucket's access
        time is read under that bucket's lock, so a bucket touched within the
        TTL window is never dropped.
        """
        with self._lock.write():
            now = self._clock()
            idle_keys = [
                key
                for key, bucket in self._buckets.items()
                if bucket.idle_for_ns(now) > self._ttl_ns
            ]
            for key in idle_keys:
                del self._buckets[key]
            remaining = len(self._buckets)

        if idle_keys:
            logger.debug(
                "limiter.sweep",
                extra={"removed": len(idle_keys), "remaining": remaining},
            )
        return len(idle_keys)
