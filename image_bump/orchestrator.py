"""Orchestrator for resolving many references concurrently.

A fixed pool of worker tasks drains a shared queue of references. Each
reference is resolved independently, and a failure for one reference is
recorded without stopping the others. Callers receive every update and every
error once the pool has drained, and decide what to write back.
"""

import asyncio
from collections.abc import Awaitable, Callable, Collection, Iterable
from dataclasses import dataclass, field
from functools import partial
import logging
from time import perf_counter

from .exceptions import BatchException, ImageBumpException, InputException
from .registry import TagLister
from .reference import ImageReference
from .resolver import update_image, update_image_pinned, verify_image

__all__ = [
    "BatchResult",
    "run_batch",
    "resolve_all",
    "verify_all",
    "DEFAULT_CONCURRENCY",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

ResolveFunc = Callable[[str], Awaitable[str | None]]


@dataclass
class BatchResult:
    """The outcome of resolving a batch of references."""

    updates: dict[str, str] = field(default_factory=dict)
    """Map of old reference to new reference for every updated item."""

    failures: dict[str, ImageBumpException] = field(default_factory=dict)
    """Map of each item that failed to resolve to its error."""

    @property
    def errors(self) -> list[ImageBumpException]:
        """Errors for the items that failed to resolve."""
        return list(self.failures.values())

    @property
    def error(self) -> BatchException | None:
        """A single error joining all failures, or None on success."""
        if not self.failures:
            return None
        return BatchException(self.errors)

    def raise_for_errors(self) -> None:
        """Raise the joined error if any item failed."""
        if error := self.error:
            raise error


async def run_batch(
    items: Iterable[str],
    func: ResolveFunc,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Resolve every item with a fixed size pool of workers.

    Each distinct non-empty item is resolved at most once. The `func` returns
    the replacement for an item or None when the item is unchanged. Errors
    derived from `ImageBumpException` are collected in the result; anything
    else is a bug and is propagated.
    """
    if concurrency < 1:
        raise InputException(f"Concurrency must be at least 1, got {concurrency}")

    queue: asyncio.Queue[str] = asyncio.Queue()
    for item in dict.fromkeys(items):
        if item:
            queue.put_nowait(item)

    result = BatchResult()
    lock = asyncio.Lock()
    _LOGGER.debug("Resolving %d items with %d workers", queue.qsize(), concurrency)

    async def worker(worker_id: int) -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            t1 = perf_counter()
            try:
                new_value = await func(item)
            except ImageBumpException as err:
                _LOGGER.debug("[worker %d] %s failed: %s", worker_id, item, err)
                async with lock:
                    result.failures[item] = err
                continue
            finally:
                queue.task_done()
                _LOGGER.debug(
                    "[worker %d] %s (%0.2fs)", worker_id, item, perf_counter() - t1
                )
            if new_value is not None and new_value != item:
                async with lock:
                    result.updates[item] = new_value

    tasks = [asyncio.create_task(worker(i)) for i in range(concurrency)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return result


def _resolve_func(
    lister: TagLister, pinned: Collection[str], reference: str
) -> Awaitable[str | None]:
    """Pick the resolution strategy for a reference."""
    if ImageReference.parse(reference).name in pinned:
        return update_image_pinned(reference, lister)
    return update_image(reference, lister)


async def resolve_all(
    references: Iterable[str],
    lister: TagLister,
    concurrency: int = DEFAULT_CONCURRENCY,
    pinned: Collection[str] | None = None,
) -> BatchResult:
    """Resolve the newest compatible version for every image reference.

    Images whose name is in `pinned` only receive patch upgrades within their
    current major.minor version.
    """
    return await run_batch(
        references, partial(_resolve_func, lister, pinned or ()), concurrency
    )


async def verify_all(
    references: Iterable[str],
    lister: TagLister,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Check that every image reference exists on its registry.

    The result has no updates, and a failure for each missing reference.
    """
    return await run_batch(
        references, partial(verify_image, lister=lister), concurrency
    )
