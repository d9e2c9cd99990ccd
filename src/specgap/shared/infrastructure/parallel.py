"""
Bounded Batch Executor.

Runs one coroutine per item with semaphore-limited concurrency. A limit of
1 runs items strictly in order, which keeps log output deterministic.
Failures propagate to the caller; nothing is swallowed.
"""

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

from specgap.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BoundedBatchExecutor:
    """Executes a batch of async tasks with at most concurrency_limit in flight."""

    def __init__(self, concurrency_limit: int = 1):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.concurrency_limit = concurrency_limit

    async def execute_batch(
        self, items: list[T], task_fn: Callable[[T], Coroutine[Any, Any, R]], batch_name: str = "batch"
    ) -> list[R]:
        """
        Apply task_fn to every item.

        Returns:
            Results in item order, regardless of completion order
        """
        start_time = time.time()
        logger.debug("batch_started", batch=batch_name, count=len(items), concurrency=self.concurrency_limit)

        if self.concurrency_limit == 1:
            results = [await task_fn(item) for item in items]
        else:
            semaphore = asyncio.Semaphore(self.concurrency_limit)

            async def _bounded(item: T) -> R:
                async with semaphore:
                    return await task_fn(item)

            results = list(await asyncio.gather(*(_bounded(item) for item in items)))

        duration = int((time.time() - start_time) * 1000)
        logger.debug("batch_completed", batch=batch_name, count=len(items), duration_ms=duration)
        return results
