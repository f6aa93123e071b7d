from .content_type import detect_content_type
from .content_type import sniff_content_type
from .counter import ProgressCounter
from .digest import Digest
from .digest import md5_sum
from .digest import md5_sum_file
from .plan import ChunkPlan
from .reader import RegionReader
from .traversal import TraversalResult
from .traversal import run_parallel
from .traversal import run_sequential


__all__ = [
    "ChunkPlan",
    "RegionReader",
    "ProgressCounter",
    "TraversalResult",
    "run_sequential",
    "run_parallel",
    "Digest",
    "md5_sum",
    "md5_sum_file",
    "detect_content_type",
    "sniff_content_type",
]
