"""MD5 fingerprints for files and file regions.

The base64 form encodes the *hex text* of the digest, not the raw 16 bytes.
Coordinators that receive the ``md5`` part parameter compare against that
exact encoding, so it must not be changed to the Content-MD5 style.
"""

from __future__ import annotations

import base64
import hashlib
import os
from typing import NamedTuple
from typing import Protocol
from typing import Union


DIGEST_BLOCK_SIZE = 1024 * 1024


class Readable(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


class Digest(NamedTuple):
    base64: str
    hex: str


def md5_sum(source: Readable, block_size: int = DIGEST_BLOCK_SIZE) -> Digest:
    """Consume ``source`` to exhaustion and return its MD5 digest.

    Errors raised by ``source.read`` propagate unchanged.
    """
    h = hashlib.md5(usedforsecurity=False)
    while True:
        block = source.read(block_size)
        if not block:
            break
        h.update(block)
    hex_digest = h.hexdigest()
    return Digest(base64=base64.b64encode(hex_digest.encode("ascii")).decode("ascii"), hex=hex_digest)


def md5_sum_file(path: Union[str, os.PathLike]) -> Digest:
    """Compute the digest of the file at ``path``."""
    with open(path, "rb") as fp:
        return md5_sum(fp)
