"""RIFF chunk header reading and the parse error taxonomy.

Every higher-level reader consumes the stream through the helpers in this
module, so short reads and overlong seeks are reported the same way
everywhere: as a ``WavParseError`` subclass carrying the chunk tag and byte
offset that triggered it.
"""
from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO

HEADER_ID_LEN = 4
HEADER_SIZE_LEN = 4
HEADER_LEN = HEADER_ID_LEN + HEADER_SIZE_LEN

_HEADER_STRUCT = struct.Struct("<4sI")


def format_tag(tag: bytes | None) -> str:
    """Render a 4-byte tag for diagnostics without assuming it is printable."""
    if tag is None:
        return "?"
    return "".join(chr(byte) if 0x20 <= byte < 0x7F else f"\\x{byte:02x}" for byte in tag)


class WavParseError(ValueError):
    """Base class for structural errors found while walking a RIFF/WAVE stream."""

    def __init__(
        self,
        message: str,
        *,
        tag: bytes | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tag = tag
        self.offset = offset

    def with_context(self, tag: bytes, offset: int) -> "WavParseError":
        if self.tag is None:
            self.tag = tag
        if self.offset is None:
            self.offset = offset
        return self

    def __str__(self) -> str:
        if self.tag is None and self.offset is None:
            return self.message
        parts = []
        if self.tag is not None:
            parts.append(f"chunk '{format_tag(self.tag)}'")
        if self.offset is not None:
            parts.append(f"offset {self.offset}")
        return f"{self.message} ({' at '.join(parts)})"


class FormatMismatchError(WavParseError):
    """Raised when a mandatory outer tag (RIFF or WAVE) does not match."""

    def __init__(
        self,
        expected: bytes,
        found: bytes | None = None,
        *,
        offset: int | None = None,
    ) -> None:
        found_text = "end of stream" if not found else f"'{format_tag(found)}'"
        super().__init__(
            f"Invalid encoded format on {format_tag(expected)} header: "
            f"expected '{format_tag(expected)}', found {found_text}",
            offset=offset,
        )
        self.expected = expected
        self.found = found


class TruncatedError(WavParseError):
    """Raised when the stream ends in the middle of a field or a chunk body."""


class BoundsError(WavParseError):
    """Raised when a declared size implies an impossible or oversized read."""


class MissingChunkError(WavParseError):
    """Raised when a chunk required by the caller was never seen."""


@dataclass(frozen=True)
class ChunkHeader:
    tag: bytes
    size: int
    offset: int

    @property
    def body_offset(self) -> int:
        return self.offset + HEADER_LEN

    @property
    def end_offset(self) -> int:
        return self.body_offset + self.size

    @property
    def tag_text(self) -> str:
        return format_tag(self.tag)


def stream_length(stream: BinaryIO) -> int:
    """Return the total length of a seekable stream, keeping the cursor in place."""
    position = stream.tell()
    try:
        return stream.seek(0, io.SEEK_END)
    finally:
        stream.seek(position, io.SEEK_SET)


def read_exact(
    stream: BinaryIO,
    count: int,
    *,
    tag: bytes | None = None,
    what: str = "field",
) -> bytes:
    offset = stream.tell()
    data = stream.read(count)
    if len(data) != count:
        raise TruncatedError(
            f"Stream ended while reading {what}: wanted {count} bytes, got {len(data)}",
            tag=tag,
            offset=offset,
        )
    return data


def skip_bytes(stream: BinaryIO, count: int, *, tag: bytes | None = None) -> int:
    """Advance the cursor by ``count`` bytes without reading them.

    Seeking past the end of a file is legal for the OS, so the remaining
    length is checked explicitly instead of trusting ``seek``.
    """
    offset = stream.tell()
    remaining = stream_length(stream) - offset
    if count > remaining:
        raise TruncatedError(
            f"Cannot skip {count} bytes, only {remaining} remain",
            tag=tag,
            offset=offset,
        )
    return stream.seek(count, io.SEEK_CUR)


def read_header(stream: BinaryIO) -> ChunkHeader | None:
    """Read one 8-byte chunk header.

    Returns ``None`` when the cursor sits exactly at the end of the stream,
    which is how the chunk loop terminates. A partial header raises
    ``TruncatedError``.
    """
    offset = stream.tell()
    raw = stream.read(HEADER_LEN)
    if not raw:
        return None
    if len(raw) != HEADER_LEN:
        raise TruncatedError(
            f"Truncated chunk header: {len(raw)} of {HEADER_LEN} bytes available",
            tag=raw[:HEADER_ID_LEN] if len(raw) >= HEADER_ID_LEN else None,
            offset=offset,
        )
    tag, size = _HEADER_STRUCT.unpack(raw)
    return ChunkHeader(tag=tag, size=size, offset=offset)


def read_header_expecting(stream: BinaryIO, expected_tag: bytes) -> ChunkHeader:
    offset = stream.tell()
    try:
        header = read_header(stream)
    except TruncatedError as exc:
        raise FormatMismatchError(expected_tag, exc.tag, offset=offset) from exc
    if header is None or header.tag != expected_tag:
        raise FormatMismatchError(
            expected_tag, header.tag if header is not None else None, offset=offset
        )
    return header


def read_tag_expecting(stream: BinaryIO, expected_tag: bytes) -> bytes:
    """Read a bare 4-byte tag (no size field) and require an exact match."""
    offset = stream.tell()
    tag = stream.read(HEADER_ID_LEN)
    if tag != expected_tag:
        raise FormatMismatchError(expected_tag, tag, offset=offset)
    return tag
