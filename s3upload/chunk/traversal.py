"""Strategies for applying a function to every region of a chunk plan.

``run_sequential`` visits regions in index order on the calling thread and
stops at the first failure. ``run_parallel`` runs one task per region on a
thread pool, attempts every region regardless of failures and returns once
all of them have finished.

Neither strategy raises what the function raises: exceptions are captured
per index in the returned ``TraversalResult``.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Callable
from typing import Generic
from typing import Optional
from typing import TypeVar
from typing import overload

from s3upload.chunk.reader import RegionReader
from s3upload.errors import TraversalError


logger = logging.getLogger(__name__)

T = TypeVar("T")

RegionFn = Callable[[int, RegionReader], T]


class TraversalResult(Sequence[Optional[Exception]], Generic[T]):
    """Per-index outcome of a traversal.

    As a sequence, ``result[i]`` is the exception captured for region ``i`` or
    ``None``. ``None`` alone does not mean success: a fail-fast traversal never
    attempts the regions after the failing one, so ``attempted(i)`` tells the
    two apart.
    """

    def __init__(self, size: int) -> None:
        self._errors: list[Optional[Exception]] = [None] * size
        self._attempted: list[bool] = [False] * size
        self.values: list[Optional[T]] = [None] * size

    @overload
    def __getitem__(self, index: int) -> Optional[Exception]: ...

    @overload
    def __getitem__(self, index: slice) -> list[Optional[Exception]]: ...

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        return self._errors[index]

    def __len__(self) -> int:
        return len(self._errors)

    def __repr__(self) -> str:
        return f"TraversalResult(size={len(self)}, attempted={self.attempted_count}, failed={sorted(self.errors)})"

    def attempted(self, index: int) -> bool:
        return self._attempted[index]

    @property
    def attempted_count(self) -> int:
        return sum(self._attempted)

    @property
    def errors(self) -> dict[int, Exception]:
        return {idx: err for idx, err in enumerate(self._errors) if err is not None}

    @property
    def ok(self) -> bool:
        return all(self._attempted) and not self.errors

    def raise_for_errors(self) -> None:
        """Raise one TraversalError combining every captured failure."""
        errors = self.errors
        if errors:
            raise TraversalError(errors)

    def _run(self, fn: RegionFn[T], index: int, reader: RegionReader) -> None:
        self._attempted[index] = True
        try:
            self.values[index] = fn(index, reader)
        except Exception as e:
            logger.warning(f"chunk {index} [{reader.base}, {reader.limit}) failed: {e}")
            self._errors[index] = e


def run_sequential(readers: Sequence[RegionReader], fn: RegionFn[T]) -> TraversalResult[T]:
    """Apply ``fn(index, reader)`` in index order, stopping at the first failure."""
    result: TraversalResult[T] = TraversalResult(len(readers))
    for idx, reader in enumerate(readers):
        result._run(fn, idx, reader)
        if result[idx] is not None:
            skipped = len(readers) - idx - 1
            if skipped:
                logger.info(f"Sequential traversal stopped at chunk {idx}; {skipped} chunk(s) not attempted")
            break
    return result


def run_parallel(
    readers: Sequence[RegionReader], fn: RegionFn[T], max_workers: Optional[int] = None
) -> TraversalResult[T]:
    """Apply ``fn(index, reader)`` to every region concurrently and wait for all of them.

    Args:
        readers: Regions to visit
        fn: Function called with the region index and its reader
        max_workers: Upper bound on concurrent tasks. None or 0 runs one worker per region.
    """
    n = len(readers)
    result: TraversalResult[T] = TraversalResult(n)
    if n == 0:
        return result

    workers = min(max_workers, n) if max_workers else n
    logger.debug(f"Parallel traversal of {n} chunk(s) with {workers} worker(s)")

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunk") as pool:
        for idx, reader in enumerate(readers):
            # each task gets its own copy; one Context cannot be entered by two threads
            ctx = contextvars.copy_context()
            pool.submit(ctx.run, result._run, fn, idx, reader)

    failed = len(result.errors)
    if failed:
        logger.warning(f"Parallel traversal finished with {failed}/{n} failed chunk(s)")
    return result
