"""Rate limiting adapters.

An in-memory token bucket registry keyed by client address, plus the
background sweeper that evicts idle buckets.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import LimiterRegistry
from app.adapters.rate_limit.sweeper import LimiterSweeper
from app.adapters.rate_limit.token_bucket import TokenBucket

__all__ = ["AbstractRateLimiter", "LimiterRegistry", "LimiterSweeper", "TokenBucket"]
