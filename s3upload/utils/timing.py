"""Timing instrumentation utilities for upload and checksum runs."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any
from typing import Generator


logger = logging.getLogger(__name__)


@contextmanager
def timing_context(
    operation: str, *, log_threshold_ms: float = 0.0, extra: dict[str, Any] | None = None
) -> Generator[dict[str, Any], None, None]:
    """Context manager for timing synchronous operations.

    Args:
        operation: Name of the operation being timed
        log_threshold_ms: Only log if duration exceeds this threshold (ms). 0 = always log.
        extra: Additional context to include in log

    Yields:
        Timing dict with 'start' field, will have 'duration_ms' on exit

    Example:
        with timing_context("upload_part", log_threshold_ms=100, extra={"part": 3}) as t:
            put_part(reader)
        # Logs: "TIMING upload_part duration_ms=150.5 part=3"
    """
    ctx: dict[str, Any] = {"start": time.perf_counter()}
    if extra:
        ctx.update(extra)

    try:
        yield ctx
    finally:
        duration_ms = (time.perf_counter() - ctx["start"]) * 1000.0
        ctx["duration_ms"] = duration_ms

        if duration_ms >= log_threshold_ms:
            log_timing(operation, duration_ms, extra=extra)


def log_timing(operation: str, duration_ms: float, *, extra: dict[str, Any] | None = None) -> None:
    """Direct timing log helper for manual timing."""
    extra_str = " ".join(f"{k}={v}" for k, v in (extra or {}).items())
    logger.info(f"TIMING {operation} duration_ms={duration_ms:.2f} {extra_str}".strip())


class TimeTracker:
    """Running average of elapsed time for one named operation.

    Call the tracker with the ``time.perf_counter()`` value taken when the
    operation started; each call logs the elapsed time of that run together
    with the average over every run seen so far.

    Example:
        track = TimeTracker("md5 /tmp/1G.raw")
        for _ in range(3):
            start = time.perf_counter()
            md5_sum_file("/tmp/1G.raw")
            track(start)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.runs = 0
        self.average_ms = 0.0
        self._lock = threading.Lock()

    def __call__(self, start: float) -> float:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        with self._lock:
            self.runs += 1
            self.average_ms += (elapsed_ms - self.average_ms) / self.runs
            runs, average_ms = self.runs, self.average_ms
        logger.info(f"TIMING {self.name} n={runs} duration_ms={elapsed_ms:.2f} average_ms={average_ms:.2f}")
        return elapsed_ms
