"""Bounded-concurrency helper for fan-out over I/O-bound calls.

Used by the batch orchestrator to request embeddings for one file's
chunks in parallel without flooding the embedding server: at most
``limit`` requests are in flight at any moment, and results come back in
input order.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    limit: int = 4,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most *limit* at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    limit:
        Maximum number of awaitables running simultaneously (min 1).
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


def first_exception(results: list[_T | BaseException]) -> BaseException | None:
    """Return the first exception in a ``return_exceptions=True`` result list."""
    for result in results:
        if isinstance(result, BaseException):
            return result
    return None
