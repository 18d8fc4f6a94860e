from __future__ import annotations

import asyncio

import pytest

from claimsync.domain.concurrency import gather_bounded, run_batched


class _InFlight:
    def __init__(self) -> None:
        self.current = 0
        self.peak = 0

    async def double(self, value: int) -> int:
        self.current += 1
        self.peak = max(self.peak, self.current)
        await asyncio.sleep(0.001 * (5 - value % 5))
        self.current -= 1
        return value * 2


def test_gather_bounded_keeps_order_and_limit() -> None:
    tracker = _InFlight()

    results = asyncio.run(gather_bounded(tracker.double, list(range(12)), max_concurrency=4))

    assert results == [value * 2 for value in range(12)]
    assert tracker.peak <= 4


def test_run_batched_waits_for_each_batch() -> None:
    started: list[int] = []
    finished: list[int] = []

    async def record(value: int) -> int:
        started.append(value)
        # Every item of the previous batch has finished before this one starts.
        assert len(finished) >= (value // 3) * 3
        await asyncio.sleep(0)
        finished.append(value)
        return value

    results = asyncio.run(run_batched(record, list(range(7)), batch_size=3))

    assert results == list(range(7))
    assert sorted(started) == list(range(7))


def test_run_batched_handles_empty_input() -> None:
    tracker = _InFlight()

    assert asyncio.run(run_batched(tracker.double, [], batch_size=10)) == []
    assert tracker.peak == 0


@pytest.mark.parametrize("size", [0, -1])
def test_invalid_limits_are_rejected(size: int) -> None:
    tracker = _InFlight()

    with pytest.raises(ValueError, match="at least 1"):
        asyncio.run(run_batched(tracker.double, [1], batch_size=size))
    with pytest.raises(ValueError, match="at least 1"):
        asyncio.run(gather_bounded(tracker.double, [1], max_concurrency=size))
