"""
Batch crawl controller.

Runs a processor over work items in fixed-size batches. Every member of
a batch is attempted before the next batch starts; a failing member is
logged and contributes nothing, it never aborts its batch.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def process_in_batches(
    items: Sequence[T],
    concurrency: int,
    processor: Callable[[T], Awaitable[Optional[R]]],
    delay_ms: int = 0,
    label: str = "batch",
) -> list[R]:
    """
    Process items concurrently in batches of `concurrency`.

    Args:
        items: Work items
        concurrency: Batch size (>= 1)
        processor: Async callable; returning None means "no result"
        delay_ms: Pause between consecutive batches
        label: Name used in log events

    Returns:
        Non-None results, concatenated in batch order
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    results: list[R] = []
    total = len(items)

    for start in range(0, total, concurrency):
        if start and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        batch = items[start:start + concurrency]
        outcomes = await asyncio.gather(*(processor(item) for item in batch), return_exceptions=True)

        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning("batch_item_failed", label=label, item=str(item), error=str(outcome))
                continue
            if outcome is not None:
                results.append(outcome)

        logger.debug(
            "batch_completed",
            label=label,
            processed=min(start + concurrency, total),
            total=total,
            results=len(results),
        )

    return results
