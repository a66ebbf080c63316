"""Summary reporting for parsed WAV files: payload, schema check, text."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema

from wavscan.dsp.decoders import format_tag_name
from wavscan.dsp.io import (
    DurationUnavailableError,
    ParseResult,
    compute_duration_seconds,
)
from wavscan.resources import schemas_dir

SUMMARY_SCHEMA_VERSION = "0.1.0"
SUMMARY_SCHEMA_FILENAME = "wav_summary.schema.json"

__all__ = [
    "SUMMARY_SCHEMA_VERSION",
    "DurationUnavailableError",
    "build_summary",
    "compute_duration_seconds",
    "render_summary_text",
    "validate_summary",
]


def _load_json_schema(schema_path: Path) -> dict[str, Any]:
    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to load schema from {schema_path}: {exc}") from exc
    if not isinstance(schema, dict):
        raise ValueError(f"Schema JSON must be an object: {schema_path}")
    return schema


def build_summary(
    result: ParseResult,
    *,
    path: Path | None = None,
    file_stat: os.stat_result | None = None,
) -> dict[str, Any]:
    """Build the JSON-ready summary for a parse that saw both fmt and data."""
    wav_format = result.require_format()
    data = result.require_data()

    duration_s: int | None = None
    duration_error: str | None = None
    try:
        duration_s = compute_duration_seconds(result)
    except DurationUnavailableError as exc:
        duration_error = str(exc)

    payload: dict[str, Any] = {
        "schema_version": SUMMARY_SCHEMA_VERSION,
        "format_tag": f"0x{wav_format.format_tag:04x}",
        "format_name": format_tag_name(wav_format.format_tag),
        "channels": wav_format.channels,
        "sample_rate_hz": wav_format.sample_rate_hz,
        "byte_rate": wav_format.byte_rate,
        "block_align": wav_format.block_align,
        "bits_per_sample": wav_format.bits_per_sample,
        "info_name": result.list_info.name if result.list_info is not None else None,
        "data_bytes": data.length,
        "data_offset": data.offset,
        "duration_s": duration_s,
        "duration_error": duration_error,
        "riff_size": result.riff_size,
        "chunks": [
            {"tag": chunk.tag, "offset": chunk.offset, "size": chunk.size}
            for chunk in result.chunks
        ],
    }
    if path is not None and file_stat is not None:
        payload["file"] = {
            "path": path.as_posix(),
            "size_bytes": file_stat.st_size,
            "link_count": file_stat.st_nlink,
        }
    return payload


def validate_summary(payload: dict[str, Any], *, schema_path: Path | None = None) -> None:
    if schema_path is None:
        schema_path = schemas_dir() / SUMMARY_SCHEMA_FILENAME
    schema = _load_json_schema(schema_path)
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(
        validator.iter_errors(payload),
        key=lambda err: [str(item) for item in err.path],
    )
    if not errors:
        return

    lines: list[str] = []
    for err in errors:
        path = ".".join(str(item) for item in err.path) or "$"
        lines.append(f"- {path}: {err.message}")
    details = "\n".join(lines)
    raise ValueError(f"WAV summary schema validation failed:\n{details}")


def _optional_text(value: Any) -> str:
    if value is None:
        return "n/a"
    return str(value)


def render_summary_text(payload: dict[str, Any]) -> str:
    lines = [
        "WAV Info",
        f"- Fmt Tag: {payload['format_tag']} ({payload['format_name']})",
        f"- Channels: {payload['channels']}",
        f"- Samples Per Sec: {payload['sample_rate_hz']}",
        f"- Avg. Bytes Per Sec: {payload['byte_rate']}",
        f"- Block Align: {payload['block_align']}",
        f"- Bits Per Sample: {_optional_text(payload['bits_per_sample'])}",
        f"- Author: {payload['info_name'] or ''}",
        "",
        f"- Data Byte Length: {payload['data_bytes']}",
    ]
    if payload.get("duration_s") is not None:
        lines.append(f"- Duration: {payload['duration_s']}s")
    else:
        lines.append(f"- Duration: unavailable ({payload.get('duration_error')})")

    chunks = payload.get("chunks") or []
    if chunks:
        lines.append("")
        lines.append("Chunks")
        for chunk in chunks:
            lines.append(f"- '{chunk['tag']}' @ {chunk['offset']}, size={chunk['size']}")

    file_info = payload.get("file")
    if isinstance(file_info, dict):
        lines.append("")
        lines.append(
            f"Number of links to file '{file_info['path']}': {file_info['link_count']}"
        )
        lines.append(f"File size: {file_info['size_bytes']}")
    return "\n".join(lines)
