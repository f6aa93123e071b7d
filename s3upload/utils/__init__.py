"""Utility modules and functions for s3upload.

This package combines the environment helpers from core.py with the timing utilities.
"""

# Explicit imports only - no star imports to avoid namespace pollution
from s3upload.utils.core import env  # noqa: F401
from s3upload.utils.timing import TimeTracker  # noqa: F401
from s3upload.utils.timing import log_timing  # noqa: F401
from s3upload.utils.timing import timing_context  # noqa: F401


__all__ = [
    # From core.py
    "env",
    # From timing.py
    "TimeTracker",
    "log_timing",
    "timing_context",
]
