from __future__ import annotations

import threading


class ProgressCounter:
    """Byte counter shared by a chunk plan and every region reader it produced.

    Each operation is atomic; the guarding lock never leaves the cell.
    """

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def increment(self, n: int) -> int:
        with self._lock:
            self._value += n
            return self._value

    def decrement(self, n: int) -> int:
        with self._lock:
            self._value -= n
            return self._value

    def get(self) -> int:
        with self._lock:
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    def __repr__(self) -> str:
        return f"ProgressCounter({self.get()})"
