"""Tests for the background limiter sweeper."""

import asyncio

import pytest

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.sweeper import SWEEP_INTERVAL_SECONDS, LimiterSweeper


class RecordingLimiter(AbstractRateLimiter):
    def __init__(self, fail_first: bool = False) -> None:
        self.sweeps = 0
        self.fail_first = fail_first

    def allow(self, key: str) -> bool:
        return True

    def sweep(self) -> int:
        self.sweeps += 1
        if self.fail_first and self.sweeps == 1:
            raise RuntimeError("boom")
        return 0


def test_default_interval_is_ten_minutes() -> None:
    assert SWEEP_INTERVAL_SECONDS == 600


def test_invalid_interval_rejected() -> None:
    with pytest.raises(ValueError):
        LimiterSweeper(RecordingLimiter(), interval_seconds=0)


@pytest.mark.asyncio
async def test_sweeps_periodically_until_stopped() -> None:
    limiter = RecordingLimiter()
    sweeper = LimiterSweeper(limiter, interval_seconds=0.01)

    await sweeper.start()
    assert sweeper.running is True
    await asyncio.sleep(0.1)
    await sweeper.stop()

    assert limiter.sweeps >= 2
    assert sweeper.running is False

    count = limiter.sweeps
    await asyncio.sleep(0.05)
    assert limiter.sweeps == count


@pytest.mark.asyncio
async def test_stop_is_prompt_with_long_interval() -> None:
    limiter = RecordingLimiter()
    sweeper = LimiterSweeper(limiter)

    await sweeper.start()
    await asyncio.wait_for(sweeper.stop(), timeout=1.0)

    assert limiter.sweeps == 0
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent() -> None:
    sweeper = LimiterSweeper(RecordingLimiter(), interval_seconds=60)

    await sweeper.stop()
    await sweeper.start()
    await sweeper.start()
    assert sweeper.running is True

    await sweeper.stop()
    await sweeper.stop()
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_restart_after_stop() -> None:
    limiter = RecordingLimiter()
    sweeper = LimiterSweeper(limiter, interval_seconds=0.01)

    await sweeper.start()
    await sweeper.stop()
    await sweeper.start()
    await asyncio.sleep(0.05)
    await sweeper.stop()

    assert limiter.sweeps >= 1


@pytest.mark.asyncio
async def test_sweep_failure_does_not_kill_task() -> None:
    limiter = RecordingLimiter(fail_first=True)
    sweeper = LimiterSweeper(limiter, interval_seconds=0.01)

    await sweeper.start()
    await asyncio.sleep(0.1)
    assert sweeper.running is True
    await sweeper.stop()

    assert limiter.sweeps >= 2
