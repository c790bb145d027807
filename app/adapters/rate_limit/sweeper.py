"""Background eviction of idle rate limiter entries.

The sweeper is an asyncio task bound to the application lifespan: started on
startup, signalled and awaited on shutdown.
"""

from __future__ import annotations

import asyncio
import logging

from app.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 10 * 60


class LimiterSweeper:
    """Periodically calls ``sweep()`` on a rate limiter."""

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        stop_timeout_seconds: float = 5.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._limiter = limiter
        self._interval = interval_seconds
        self._stop_timeout = stop_timeout_seconds
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background task. Calling it twice is a no-op."""
        if self._task is not None:
            logger.debug("limiter.sweeper_already_running")
            return

        # Created here so the event belongs to the loop running the lifespan
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name="limiter-sweeper")
        logger.info("limiter.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        """Signal the task to exit and wait for it, cancelling on timeout."""
        if self._task is None or self._stop_event is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self._stop_timeout)
        except asyncio.TimeoutError:
            logger.warning("limiter.sweeper_stop_timeout")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("limiter.sweeper_stopped")

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            try:
                # The sweep blocks on the registry write lock; keep it off the loop
                removed = await asyncio.to_thread(self._limiter.sweep)
            except Exception:
                logger.exception("limiter.sweep_failed")
                continue
            logger.debug("limiter.sweep_completed", extra={"removed": removed})
