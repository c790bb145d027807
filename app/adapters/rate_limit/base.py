"""Rate limiter interfaces.

The HTTP layer depends on this abstraction rather than the in-memory
registry so the storage can change without touching the request pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractRateLimiter(ABC):
    """Interface for keyed rate limiters."""

    @abstractmethod
    def allow(self, key: str) -> bool:
        """Consume one permit for ``key``.

        Args:
            key: Client identity (e.g., source IP address).

        Returns:
            True if the request may proceed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop state for idle keys.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError
