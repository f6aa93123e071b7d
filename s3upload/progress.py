"""Background progress reporting for a chunk plan."""

from __future__ import annotations

import contextvars
import logging
import threading
from typing import Any
from typing import Optional
from typing import Protocol


logger = logging.getLogger(__name__)


class ProgressSource(Protocol):
    @property
    def size(self) -> int: ...

    def count(self) -> int: ...


def percent(n: int, size: int) -> float:
    """Share of ``size`` covered by ``n`` bytes; an empty file is complete."""
    if size <= 0:
        return 100.0
    return (n / size) * 100


class ProgressReporter:
    """Samples a plan's byte counter on a fixed interval and logs it.

    The counter is read without coordinating with the readers, so the value
    can step back while a region is being rewound.
    """

    def __init__(self, source: ProgressSource, interval: float = 1.0, label: str = "") -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.source = source
        self.interval = interval
        self.label = label
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

    def report(self) -> float:
        size = self.source.size
        n = self.source.count()
        pct = percent(n, size)
        prefix = f"{self.label} " if self.label else ""
        logger.info(f"{prefix}total: {size} read: {n} progress: {pct:.2f}%")
        return pct

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.report()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("progress reporter already started")
        ctx = contextvars.copy_context()
        self._thread = threading.Thread(target=ctx.run, args=(self._loop,), name="progress-reporter", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop sampling and log the final value."""
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        self.report()
