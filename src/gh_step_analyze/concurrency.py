"""Shared bound on in-flight GitHub API calls."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class RequestLimiter:
    """Run blocking provider calls in worker threads under a shared permit count.

    One limiter is created per analysis and handed to every task, so the bound
    applies across all repositories rather than per repository.
    """

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._semaphore = asyncio.Semaphore(limit)

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Await ``func(*args, **kwargs)`` in a worker thread once a permit is free."""
        # Cancellation while waiting here does not acquire a permit.
        async with self._semaphore:
            return await asyncio.to_thread(func, *args, **kwargs)
