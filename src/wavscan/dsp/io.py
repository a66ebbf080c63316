from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from wavscan.core.run_config import resolve_scan_config
from wavscan.dsp.chunks import (
    HEADER_LEN,
    ChunkHeader,
    MissingChunkError,
    TruncatedError,
    WavParseError,
    read_header,
    read_header_expecting,
    read_tag_expecting,
    stream_length,
)
from wavscan.dsp.decoders import (
    DataExtent,
    RiffListInfo,
    WavFormat,
    decode_format,
    decode_list,
    format_tag_name,
    locate_data,
)

logger = logging.getLogger(__name__)

RIFF_TAG = b"RIFF"
WAVE_TAG = b"WAVE"
FMT_TAG = b"fmt "
LIST_TAG = b"LIST"
DATA_TAG = b"data"


class WavOpenError(OSError):
    """Raised when the input path cannot be opened for reading."""


class DurationUnavailableError(ValueError):
    """Raised when the parsed fields cannot support a duration computation."""


@dataclass(frozen=True)
class ChunkRecord:
    tag: str
    offset: int
    size: int


@dataclass(frozen=True)
class ParseResult:
    riff_size: int
    format: WavFormat | None = None
    list_info: RiffListInfo | None = None
    data: DataExtent | None = None
    chunks: tuple[ChunkRecord, ...] = ()

    def require_format(self) -> WavFormat:
        if self.format is None:
            raise MissingChunkError("Missing fmt chunk", tag=FMT_TAG)
        return self.format

    def require_data(self) -> DataExtent:
        if self.data is None:
            raise MissingChunkError("Missing data chunk", tag=DATA_TAG)
        return self.data


def compute_duration_seconds(result: ParseResult) -> int:
    """Return the whole-second playback duration of a parsed PCM stream.

    Each division floors, so the value matches a truncating integer pipeline:
    ``data_bytes / bytes_per_sample / channels / sample_rate``.
    """
    wav_format = result.format
    if wav_format is None:
        raise DurationUnavailableError("Duration needs a fmt chunk, none was found.")
    if result.data is None:
        raise DurationUnavailableError("Duration needs a data chunk, none was found.")
    if wav_format.bits_per_sample is None:
        raise DurationUnavailableError(
            "Bits per sample is only read for PCM; format tag "
            f"0x{wav_format.format_tag:04x} ({format_tag_name(wav_format.format_tag)}) "
            "does not provide it."
        )
    bytes_per_sample = wav_format.bits_per_sample // 8
    if bytes_per_sample == 0:
        raise DurationUnavailableError(
            f"Invalid bits per sample {wav_format.bits_per_sample} for duration."
        )
    if wav_format.channels == 0:
        raise DurationUnavailableError("Invalid channel count 0 for duration.")
    if wav_format.sample_rate_hz == 0:
        raise DurationUnavailableError("Invalid sample rate 0 for duration.")
    return (
        result.data.length // bytes_per_sample // wav_format.channels
    ) // wav_format.sample_rate_hz


def _next_header(stream: BinaryIO, end: int, total: int) -> ChunkHeader | None:
    position = stream.tell()
    if position >= end:
        return None
    remaining = end - position
    if remaining < HEADER_LEN:
        if end < total:
            # Same as an extent ending inside a chunk body: stop at the extent.
            logger.debug(
                "RIFF extent ends %d bytes into the chunk header at %d; stopping",
                remaining,
                position,
            )
            return None
        raise TruncatedError(
            f"Truncated chunk header: {remaining} of {HEADER_LEN} bytes available",
            offset=position,
        )
    return read_header(stream)


def _chunk_boundary(header: ChunkHeader, total: int, *, pad_odd_chunks: bool) -> int:
    boundary = header.end_offset
    if boundary > total:
        raise TruncatedError(
            f"Chunk declares {header.size} bytes but the stream ends at {total}",
            tag=header.tag,
            offset=header.offset,
        )
    if pad_odd_chunks and header.size % 2 == 1:
        if boundary + 1 <= total:
            boundary += 1
        else:
            logger.debug("Ignoring missing pad byte after final chunk '%s'", header.tag_text)
    return boundary


def read_wav(stream: BinaryIO, config: dict[str, Any] | None = None) -> ParseResult:
    """Walk a RIFF/WAVE stream and return what its chunks describe.

    The stream must be positioned at the ``RIFF`` tag. The walker owns the
    cursor: after each chunk it seeks to the declared chunk boundary itself,
    so decoders that read less than their chunk (non-PCM ``fmt ``, non-INFO
    ``LIST``) never desynchronize the scan.
    """
    cfg = resolve_scan_config(config)

    riff_header = read_header_expecting(stream, RIFF_TAG)
    read_tag_expecting(stream, WAVE_TAG)

    total = stream_length(stream)
    end = total
    if cfg["limit_to_riff_size"]:
        end = min(total, riff_header.end_offset)
    if riff_header.end_offset > total:
        logger.debug(
            "RIFF size %d exceeds stream length %d; scanning to end of stream",
            riff_header.size,
            total,
        )

    wav_format: WavFormat | None = None
    list_info: RiffListInfo | None = None
    data: DataExtent | None = None
    chunks: list[ChunkRecord] = []

    while True:
        header = _next_header(stream, end, total)
        if header is None:
            break
        chunks.append(ChunkRecord(tag=header.tag_text, offset=header.offset, size=header.size))
        logger.debug(
            "Processing '%s' at %d (%d bytes)", header.tag_text, header.offset, header.size
        )

        try:
            if header.tag == FMT_TAG:
                if wav_format is not None:
                    logger.warning("Repeated fmt chunk at %d replaces the earlier one", header.offset)
                wav_format = decode_format(stream, header)
            elif header.tag == LIST_TAG:
                decoded = decode_list(stream, header, max_info_bytes=cfg["max_info_bytes"])
                if decoded is not None:
                    if list_info is not None:
                        logger.warning(
                            "Repeated LIST INFO chunk at %d replaces the earlier one",
                            header.offset,
                        )
                    list_info = decoded
            elif header.tag == DATA_TAG:
                if data is not None:
                    logger.warning("Repeated data chunk at %d replaces the earlier one", header.offset)
                data = locate_data(stream, header)
            else:
                logger.debug("Skipping unknown chunk '%s'", header.tag_text)

            boundary = _chunk_boundary(header, total, pad_odd_chunks=cfg["pad_odd_chunks"])
        except WavParseError as exc:
            exc.with_context(header.tag, header.offset)
            raise
        stream.seek(boundary, io.SEEK_SET)

    return ParseResult(
        riff_size=riff_header.size,
        format=wav_format,
        list_info=list_info,
        data=data,
        chunks=tuple(chunks),
    )


def read_wav_path(path: Path, config: dict[str, Any] | None = None) -> ParseResult:
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise WavOpenError(f"Can not open file '{path}': {exc}") from exc
    with handle:
        return read_wav(handle, config)


def read_wav_metadata(path: Path, config: dict[str, Any] | None = None) -> dict:
    """Parse RIFF/WAVE chunks and return basic WAV metadata as a flat dict."""
    result = read_wav_path(path, config)
    wav_format = result.require_format()
    data = result.require_data()

    try:
        duration_s: int | None = compute_duration_seconds(result)
    except DurationUnavailableError:
        duration_s = None

    return {
        "audio_format": wav_format.format_tag,
        "audio_format_name": format_tag_name(wav_format.format_tag),
        "channels": wav_format.channels,
        "sample_rate_hz": wav_format.sample_rate_hz,
        "byte_rate": wav_format.byte_rate,
        "block_align": wav_format.block_align,
        "bits_per_sample": wav_format.bits_per_sample,
        "data_bytes": data.length,
        "data_offset": data.offset,
        "info_name": result.list_info.name if result.list_info is not None else None,
        "riff_size": result.riff_size,
        "duration_s": duration_s,
        "chunks": [
            {"tag": chunk.tag, "offset": chunk.offset, "size": chunk.size}
            for chunk in result.chunks
        ],
    }
