"""Errors raised by the chunked-file engine."""


class ChunkError(Exception):
    """Base class for chunk plan errors."""

    pass


class ChunkSizeError(ChunkError, ValueError):
    """Raised when a plan is opened with a non-positive chunk size."""

    def __init__(self, chunk_size: int):
        self.chunk_size = chunk_size
        super().__init__(f"chunk size must be positive, got {chunk_size}")


class PlanStateError(ChunkError):
    """Raised when a plan is used outside its open/close lifecycle."""

    pass


class TraversalError(ChunkError):
    """One or more regions failed during a traversal.

    ``errors`` maps region index to the exception captured for it.
    """

    def __init__(self, errors: dict[int, Exception]):
        self.errors = dict(sorted(errors.items()))
        details = "; ".join(f"chunk {idx}: {err}" for idx, err in self.errors.items())
        super().__init__(f"{len(self.errors)} chunk(s) failed: [{details}]")
