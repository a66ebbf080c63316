from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from wavscan.dsp.chunks import (
    BoundsError,
    ChunkHeader,
    read_exact,
    skip_bytes,
)

WAVE_FORMAT_PCM = 0x0001
MAX_STR_LEN = 256
DEFAULT_MAX_INFO_BYTES = MAX_STR_LEN - 1

LIST_SUBTYPE_INFO = b"INFO"

_FMT_BASE = struct.Struct("<HHIIH")
_FMT_BITS = struct.Struct("<H")

_FORMAT_TAG_NAMES = {
    0x0001: "PCM",
    0x0002: "MS ADPCM",
    0x0003: "IEEE float",
    0x0006: "A-law",
    0x0007: "mu-law",
    0x0011: "IMA ADPCM",
    0x0055: "MPEG Layer 3",
    0xFFFE: "Extensible",
}


@dataclass(frozen=True)
class WavFormat:
    format_tag: int
    channels: int
    sample_rate_hz: int
    byte_rate: int
    block_align: int
    # None unless format_tag is PCM.
    bits_per_sample: int | None = None

    @property
    def is_pcm(self) -> bool:
        return self.format_tag == WAVE_FORMAT_PCM


@dataclass(frozen=True)
class RiffListInfo:
    name: str


@dataclass(frozen=True)
class DataExtent:
    length: int
    offset: int


def format_tag_name(format_tag: int) -> str:
    """Return a display name for a WAVE format tag ("unknown" if unrecognized)."""
    return _FORMAT_TAG_NAMES.get(format_tag, "unknown")


def decode_format(stream: BinaryIO, header: ChunkHeader) -> WavFormat:
    """Decode a ``fmt `` chunk body positioned at ``header.body_offset``.

    Reads the 14 common bytes, then ``bits_per_sample`` only for PCM. Any
    extension bytes of other formats are left for the caller to skip.
    """
    if header.size < _FMT_BASE.size:
        raise BoundsError(
            f"fmt chunk too small: {header.size} bytes, need at least {_FMT_BASE.size}",
            tag=header.tag,
            offset=header.offset,
        )
    raw = read_exact(stream, _FMT_BASE.size, tag=header.tag, what="fmt fields")
    format_tag, channels, sample_rate_hz, byte_rate, block_align = _FMT_BASE.unpack(raw)

    bits_per_sample = None
    if format_tag == WAVE_FORMAT_PCM:
        needed = _FMT_BASE.size + _FMT_BITS.size
        if header.size < needed:
            raise BoundsError(
                f"PCM fmt chunk too small: {header.size} bytes, need {needed}",
                tag=header.tag,
                offset=header.offset,
            )
        raw_bits = read_exact(stream, _FMT_BITS.size, tag=header.tag, what="bits per sample")
        (bits_per_sample,) = _FMT_BITS.unpack(raw_bits)

    return WavFormat(
        format_tag=format_tag,
        channels=channels,
        sample_rate_hz=sample_rate_hz,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
    )


def _clean_zeros(raw: bytes) -> bytes:
    # INFO sub-fields are individually NUL padded; keep their spacing.
    return raw.replace(b"\x00", b" ")


def decode_list(
    stream: BinaryIO,
    header: ChunkHeader,
    *,
    max_info_bytes: int = DEFAULT_MAX_INFO_BYTES,
) -> RiffListInfo | None:
    """Decode a ``LIST`` chunk; only the ``INFO`` subtype produces a result."""
    if header.size < len(LIST_SUBTYPE_INFO):
        raise BoundsError(
            f"LIST chunk declares {header.size} bytes, too small for its subtype",
            tag=header.tag,
            offset=header.offset,
        )
    subtype = read_exact(stream, len(LIST_SUBTYPE_INFO), tag=header.tag, what="LIST subtype")
    if subtype != LIST_SUBTYPE_INFO:
        return None

    info_size = header.size - len(LIST_SUBTYPE_INFO)
    if info_size > max_info_bytes:
        raise BoundsError(
            f"LIST INFO text is {info_size} bytes, limit is {max_info_bytes}",
            tag=header.tag,
            offset=header.offset,
        )
    raw = read_exact(stream, info_size, tag=header.tag, what="LIST INFO text")
    return RiffListInfo(name=_clean_zeros(raw).decode("latin-1"))


def locate_data(stream: BinaryIO, header: ChunkHeader) -> DataExtent:
    """Record the ``data`` payload extent and move the cursor past it unread."""
    extent = DataExtent(length=header.size, offset=header.body_offset)
    skip_bytes(stream, header.size, tag=header.tag)
    return extent
