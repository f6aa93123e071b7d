import base64
import hashlib
import io

import pytest

from s3upload.chunk.digest import Digest
from s3upload.chunk.digest import md5_sum
from s3upload.chunk.digest import md5_sum_file


DIGITS_HEX = "781e5e245d69b566979b86e28d23f2c7"
DIGITS_B64 = "NzgxZTVlMjQ1ZDY5YjU2Njk3OWI4NmUyOGQyM2YyYzc="
EMPTY_HEX = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_B64 = "ZDQxZDhjZDk4ZjAwYjIwNGU5ODAwOTk4ZWNmODQyN2U="


class FailingSource:
    def __init__(self, good_reads: int = 1):
        self.good_reads = good_reads

    def read(self, size: int = -1) -> bytes:
        if self.good_reads <= 0:
            raise OSError("disk went away")
        self.good_reads -= 1
        return b"abc"


def test_md5_sum_known_values():
    digest = md5_sum(io.BytesIO(b"0123456789"))

    assert isinstance(digest, Digest)
    assert digest.hex == DIGITS_HEX
    assert digest.base64 == DIGITS_B64


def test_md5_sum_unpacks_base64_then_hex():
    b64, hex_digest = md5_sum(io.BytesIO(b"0123456789"))

    assert b64 == DIGITS_B64
    assert hex_digest == DIGITS_HEX


def test_md5_sum_empty_source():
    digest = md5_sum(io.BytesIO(b""))

    assert digest == Digest(base64=EMPTY_B64, hex=EMPTY_HEX)


def test_base64_encodes_hex_text_not_raw_digest():
    data = b"The quick brown fox jumps over the lazy dog"
    digest = md5_sum(io.BytesIO(data))

    assert base64.b64decode(digest.base64) == digest.hex.encode("ascii")
    assert digest.base64 != base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
    assert digest.base64 == "OWUxMDdkOWQzNzJiYjY4MjZiZDgxZDM1NDJhNDE5ZDY="


def test_md5_sum_block_size_does_not_change_result():
    data = bytes(range(256)) * 40

    assert md5_sum(io.BytesIO(data), block_size=7) == md5_sum(io.BytesIO(data))
    assert md5_sum(io.BytesIO(data)).hex == hashlib.md5(data).hexdigest()


def test_md5_sum_propagates_read_errors():
    with pytest.raises(OSError, match="disk went away"):
        md5_sum(FailingSource(good_reads=2))


def test_md5_sum_file(make_file):
    path = make_file(b"0123456789")

    assert md5_sum_file(path) == Digest(base64=DIGITS_B64, hex=DIGITS_HEX)
    assert md5_sum_file(str(path)).hex == DIGITS_HEX


def test_md5_sum_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        md5_sum_file(tmp_path / "missing.bin")
