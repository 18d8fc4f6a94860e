"""Bounded fan-out helpers for outbound calls."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence


async def gather_bounded[T, R](
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    *,
    max_concurrency: int,
) -> list[R]:
    """Run ``func`` over ``items`` with at most ``max_concurrency`` in flight, keeping order."""

    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")
    semaphore = asyncio.Semaphore(max_concurrency)

    async def run_one(item: T) -> R:
        async with semaphore:
            return await func(item)

    return list(await asyncio.gather(*(run_one(item) for item in items)))


async def run_batched[T, R](
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    *,
    batch_size: int,
) -> list[R]:
    """Process ``items`` in consecutive batches; a batch starts only after the previous one ends.

    Within a batch every item runs concurrently, so at most ``batch_size`` calls of
    ``func`` are ever in flight. Results come back in input order.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    results: list[R] = []
    for offset in range(0, len(items), batch_size):
        batch = items[offset : offset + batch_size]
        results.extend(await gather_bounded(func, batch, max_concurrency=batch_size))
    return results


__all__ = ["gather_bounded", "run_batched"]
