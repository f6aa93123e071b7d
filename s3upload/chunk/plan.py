from __future__ import annotations

import logging
import os
import threading
from typing import Any
from typing import BinaryIO
from typing import Optional
from typing import Union

from s3upload.chunk.content_type import sniff_content_type
from s3upload.chunk.counter import ProgressCounter
from s3upload.chunk.digest import Digest
from s3upload.chunk.digest import md5_sum
from s3upload.chunk.reader import RegionReader
from s3upload.chunk.traversal import RegionFn
from s3upload.chunk.traversal import T
from s3upload.chunk.traversal import TraversalResult
from s3upload.chunk.traversal import run_parallel
from s3upload.chunk.traversal import run_sequential
from s3upload.errors import ChunkSizeError
from s3upload.errors import PlanStateError


logger = logging.getLogger(__name__)

HAS_PREAD = hasattr(os, "pread")


def chunk_count(size: int, chunk_size: int) -> int:
    """Number of chunks needed to cover ``size`` bytes, rounding up."""
    if chunk_size <= 0:
        raise ChunkSizeError(chunk_size)
    count, rem = divmod(size, chunk_size)
    return count + 1 if rem else count


def region_bounds(index: int, size: int, chunk_size: int) -> tuple[int, int]:
    """Half-open ``[base, limit)`` of chunk ``index``; the last chunk is clamped to ``size``."""
    base = index * chunk_size
    return base, min(base + chunk_size, size)


class ChunkPlan:
    """One file opened for chunked access.

    The plan is single use: construct it with a path and chunk size, ``open()``
    it, hand out region readers, then ``close()`` it. Region readers share the
    plan's file handle and its progress counter.

    Example:
        with ChunkPlan("/tmp/35MB.raw", 10_000_000) as plan:
            result = plan.map_async(lambda idx, region: upload(idx + 1, region))
            result.raise_for_errors()
    """

    def __init__(self, filename: Union[str, os.PathLike], chunk_size: int) -> None:
        self._filename = os.fspath(filename)
        self._chunk_size = chunk_size

        self._file: Optional[BinaryIO] = None
        self._opened = False
        self._name = ""
        self._content_type = ""
        self._size = 0
        self._chunk_count = 0
        self._progress = ProgressCounter()
        # guards seek+read on platforms without os.pread
        self._read_lock = threading.Lock()

    def __enter__(self) -> "ChunkPlan":
        return self.open()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._file is not None:
            self.close()

    def __repr__(self) -> str:
        return f"ChunkPlan({self._filename!r}, chunk_size={self._chunk_size}, chunks={self._chunk_count})"

    def open(self) -> "ChunkPlan":
        """Open and stat the file, sniff its content type and compute the partition."""
        if self._opened:
            raise PlanStateError(f"{self._filename}: chunk plan already opened")
        if self._chunk_size <= 0:
            raise ChunkSizeError(self._chunk_size)

        fp = open(self._filename, "rb", buffering=0)
        try:
            size = os.fstat(fp.fileno()).st_size
            content_type = sniff_content_type(fp)
            fp.seek(0)
        except BaseException:
            fp.close()
            raise

        self._file = fp
        self._opened = True
        self._name = os.path.basename(self._filename)
        self._size = size
        self._content_type = content_type
        self._chunk_count = chunk_count(size, self._chunk_size)

        logger.debug(
            f"Opened {self._filename}: size={size} content_type={content_type} "
            f"chunk_size={self._chunk_size} chunks={self._chunk_count}"
        )
        return self

    def close(self) -> None:
        """Release the file handle; region readers become unusable."""
        if self._file is None:
            raise PlanStateError(f"{self._filename}: chunk plan is not open")
        fp, self._file = self._file, None
        fp.close()
        logger.debug(f"Closed {self._filename}")

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise PlanStateError(f"{self._filename}: chunk plan is not open")
        return self._file

    def _pread(self, fp: BinaryIO, n: int, offset: int) -> bytes:
        if HAS_PREAD:
            return os.pread(fp.fileno(), n, offset)
        with self._read_lock:
            fp.seek(offset)
            return fp.read(n) or b""

    def read_at(self, n: int, offset: int) -> bytes:
        """Read up to ``n`` bytes at absolute ``offset`` without touching a shared cursor.

        Returns fewer than ``n`` bytes only at end of file.
        """
        fp = self._require_open()
        data = self._pread(fp, n, offset)
        if len(data) == n or not data:
            return data
        # raw reads may come back short before end of file
        parts = [data]
        got = len(data)
        while got < n:
            more = self._pread(fp, n - got, offset + got)
            if not more:
                break
            parts.append(more)
            got += len(more)
        return b"".join(parts)

    def readers(self) -> list[RegionReader]:
        """Fresh counting readers, one per chunk in index order. Resets progress."""
        self._require_open()
        self._progress.reset()
        readers = []
        for idx in range(self._chunk_count):
            base, limit = region_bounds(idx, self._size, self._chunk_size)
            readers.append(RegionReader(self, base, limit))
        return readers

    def map(self, fn: RegionFn[T]) -> TraversalResult[T]:
        """Apply ``fn(index, reader)`` to each chunk in order on this thread; stop at the first failure."""
        return run_sequential(self.readers(), fn)

    def map_async(self, fn: RegionFn[T], max_workers: Optional[int] = None) -> TraversalResult[T]:
        """Apply ``fn(index, reader)`` to every chunk concurrently and wait for all of them."""
        return run_parallel(self.readers(), fn, max_workers=max_workers)

    def md5(self) -> Digest:
        """Digest of the whole file, independent of chunking and progress."""
        self._require_open()
        return md5_sum(RegionReader(self, 0, self._size, counting=False))

    def count(self) -> int:
        """Bytes read by the current generation of counting readers."""
        return self._progress.get()

    @property
    def progress(self) -> ProgressCounter:
        return self._progress

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def size(self) -> int:
        return self._size

    @property
    def chunk_count(self) -> int:
        return self._chunk_count
