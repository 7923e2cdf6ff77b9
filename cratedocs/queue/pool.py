"""Dedicated worker pool for blocking build queue calls.

Queue operations may block on a busy or locked database. Running them
here keeps them off the event loop and off the threadpool that serves
ordinary requests.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BlockingPool:
    """Thread pool that runs blocking callables for async callers."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="build-queue"
        )

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``func`` on the pool and await its result.

        Exceptions raised by ``func`` propagate to the caller.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(func, *args, **kwargs)
        )

    def shutdown(self) -> None:
        """Wait for running calls and stop the worker threads."""
        logger.debug("Shutting down build queue pool")
        self._executor.shutdown(wait=True)


__all__ = ["BlockingPool"]
