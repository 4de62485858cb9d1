"""Retry backoff tests."""

import pytest

from loomflow.utils import retry


def test_compute_backoff_is_power_of_two():
    assert [retry.compute_backoff(a) for a in range(4)] == [1, 2, 4, 8]


def test_compute_backoff_jitter_is_bounded():
    delay = retry.compute_backoff(2, jitter=0.5)
    assert 4 <= delay <= 4.5


@pytest.mark.asyncio
async def test_schedule_retry_sleeps_for_backoff(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    await retry.schedule_retry(3)
    assert delays == [8]
