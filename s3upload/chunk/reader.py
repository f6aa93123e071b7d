from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING
from typing import BinaryIO
from typing import Iterator

from s3upload.chunk.digest import Digest
from s3upload.chunk.digest import md5_sum


if TYPE_CHECKING:
    from s3upload.chunk.plan import ChunkPlan


logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024


class RegionReader:
    """Bounded reader over the half-open byte range ``[base, limit)`` of a plan's file.

    Reads are positional against the plan's shared handle, so any number of
    regions can be read concurrently. A single reader is not meant to be
    shared between threads. The reader borrows the plan's handle and becomes
    unusable once the plan is closed.
    """

    def __init__(self, plan: ChunkPlan, base: int, limit: int, counting: bool = True) -> None:
        if not 0 <= base <= limit:
            raise ValueError(f"invalid region [{base}, {limit})")
        self._plan = plan
        self._base = base
        self._off = base
        self._limit = limit
        self._counting = counting

    @property
    def base(self) -> int:
        return self._base

    @property
    def offset(self) -> int:
        return self._off

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def counting(self) -> bool:
        return self._counting

    @property
    def remaining(self) -> int:
        return self._limit - self._off

    def size(self) -> int:
        """Logical length of the region, regardless of how much was read."""
        return self._limit - self._base

    def _read(self, n: int) -> bytes:
        n = min(n, self._limit - self._off)
        if n <= 0:
            return b""
        data = self._plan.read_at(n, self._off)
        self._off += len(data)
        if self._counting:
            self._plan.progress.increment(len(data))
        if len(data) < n:
            raise EOFError(
                f"{self._plan.filename}: unexpected end of file at offset {self._off}, region ends at {self._limit}"
            )
        return data

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``b""`` once the cursor reaches ``limit``."""
        if size is None or size < 0:
            size = self._limit - self._off
        return self._read(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Fill ``buffer`` from the cursor and return the byte count; 0 at end of region."""
        view = memoryview(buffer).cast("B")
        data = self._read(len(view))
        view[: len(data)] = data
        return len(data)

    def reset(self) -> None:
        """Rewind to ``base``, taking back this region's contribution to progress."""
        if self._counting:
            self._plan.progress.decrement(self._off - self._base)
        self._off = self._base

    def md5(self) -> Digest:
        """Digest of ``[base, limit)`` computed on an independent, non-counting clone."""
        clone = RegionReader(self._plan, self._base, self._limit, counting=False)
        return md5_sum(clone)

    def copy_to(self, sink: BinaryIO, buffer_size: int = COPY_BUFFER_SIZE) -> int:
        """Drain the rest of the region into ``sink`` and return the number of bytes copied."""
        start = self._off
        shutil.copyfileobj(self, sink, buffer_size)
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()
        return self._off - start

    def iter_chunks(self, block_size: int = COPY_BUFFER_SIZE) -> Iterator[bytes]:
        """Yield the rest of the region in blocks of at most ``block_size`` bytes."""
        while True:
            block = self.read(block_size)
            if not block:
                return
            yield block

    def __repr__(self) -> str:
        return (
            f"RegionReader(base={self._base}, offset={self._off}, limit={self._limit}, counting={self._counting})"
        )
