"""Content-type sniffing from the leading bytes of a file.

Signature matching follows the WHATWG MIME sniffing table for the common
formats; anything unrecognised is classified as UTF-8 text or opaque binary.
"""

from __future__ import annotations

from typing import Callable
from typing import Optional
from typing import Protocol


SNIFF_LEN = 512

DEFAULT_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

Matcher = Callable[[bytes], Optional[str]]


class Readable(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


_WHITESPACE = b"\t\n\x0c\r "

# Bytes that never appear in plain text. Tab, LF, FF, CR and ESC are allowed.
_BINARY_BYTES = frozenset(set(range(0x00, 0x09)) | {0x0B} | set(range(0x0E, 0x1B)) | set(range(0x1C, 0x20)))

_HTML_TAGS = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)


def _exact(signature: bytes, content_type: str) -> Matcher:
    def match(data: bytes) -> Optional[str]:
        return content_type if data.startswith(signature) else None

    return match


def _riff(form: bytes, content_type: str) -> Matcher:
    def match(data: bytes) -> Optional[str]:
        if data[:4] == b"RIFF" and data[8 : 8 + len(form)] == form:
            return content_type
        return None

    return match


def _html(data: bytes) -> Optional[str]:
    body = data.lstrip(_WHITESPACE)
    for tag in _HTML_TAGS:
        if len(body) <= len(tag):
            continue
        # tag must be terminated by a space or '>'
        if body[: len(tag)].upper() == tag and body[len(tag)] in b" >":
            return "text/html; charset=utf-8"
    return None


def _xml(data: bytes) -> Optional[str]:
    if data.lstrip(_WHITESPACE).startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return None


def _mp4(data: bytes) -> Optional[str]:
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size or data[4:8] != b"ftyp":
        return None
    for start in range(8, box_size, 4):
        if start == 12:
            # minor version
            continue
        if data[start : start + 3] == b"mp4":
            return "video/mp4"
    return None


def _text(data: bytes) -> Optional[str]:
    if any(b in _BINARY_BYTES for b in data):
        return None
    return TEXT_CONTENT_TYPE


_MATCHERS: tuple[Matcher, ...] = (
    _html,
    _xml,
    _exact(b"%PDF-", "application/pdf"),
    _exact(b"%!PS-Adobe-", "application/postscript"),
    _exact(b"\xfe\xff", "text/plain; charset=utf-16be"),
    _exact(b"\xff\xfe", "text/plain; charset=utf-16le"),
    _exact(b"\xef\xbb\xbf", TEXT_CONTENT_TYPE),
    # images
    _exact(b"\x00\x00\x01\x00", "image/x-icon"),
    _exact(b"\x00\x00\x02\x00", "image/x-icon"),
    _exact(b"BM", "image/bmp"),
    _exact(b"GIF87a", "image/gif"),
    _exact(b"GIF89a", "image/gif"),
    _riff(b"WEBPVP", "image/webp"),
    _exact(b"\x89PNG\r\n\x1a\n", "image/png"),
    _exact(b"\xff\xd8\xff", "image/jpeg"),
    # audio and video
    _riff(b"WAVE", "audio/wave"),
    _riff(b"AVI ", "video/avi"),
    _exact(b"ID3", "audio/mpeg"),
    _exact(b"OggS\x00", "application/ogg"),
    _exact(b"MThd\x00\x00\x00\x06", "audio/midi"),
    _exact(b"\x1a\x45\xdf\xa3", "video/webm"),
    _mp4,
    # fonts
    _exact(b"OTTO", "font/otf"),
    _exact(b"\x00\x01\x00\x00", "font/ttf"),
    _exact(b"ttcf", "font/collection"),
    _exact(b"wOFF", "font/woff"),
    _exact(b"wOF2", "font/woff2"),
    # archives
    _exact(b"\x1f\x8b\x08", "application/x-gzip"),
    _exact(b"PK\x03\x04", "application/zip"),
    _exact(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    _exact(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    _exact(b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    _exact(b"\x00\x61\x73\x6d", "application/wasm"),
    _text,
)


def detect_content_type(data: bytes) -> str:
    """Return the content type for a file starting with ``data``.

    Only the first 512 bytes are considered. Never fails; an empty prefix or
    unrecognised binary data yields ``application/octet-stream``.
    """
    data = data[:SNIFF_LEN]
    if not data:
        return DEFAULT_CONTENT_TYPE
    for matcher in _MATCHERS:
        content_type = matcher(data)
        if content_type:
            return content_type
    return DEFAULT_CONTENT_TYPE


def sniff_content_type(stream: Readable) -> str:
    """Read up to 512 bytes from ``stream`` and detect their content type.

    Only the bytes actually read are inspected; a short prefix is not padded,
    so an empty stream is ``application/octet-stream`` rather than an empty
    type. The stream position is left after the bytes read; callers rewind.
    """
    return detect_content_type(stream.read(SNIFF_LEN))
