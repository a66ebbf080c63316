from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from wavscan.dsp.decoders import DEFAULT_MAX_INFO_BYTES

SCAN_CONFIG_SCHEMA_VERSION = "0.1.0"

_TOP_LEVEL_KEYS = {
    "schema_version",
    "max_info_bytes",
    "pad_odd_chunks",
    "limit_to_riff_size",
}
_BOOL_KEYS = ("pad_odd_chunks", "limit_to_riff_size")
_YAML_SUFFIXES = {".yaml", ".yml"}


def _coerce_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer.")
    if isinstance(value, int):
        coerced = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field_name} must be an integer.")
        coerced = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field_name} must be an integer.")
        try:
            coerced = int(stripped)
        except ValueError as exc:
            raise ValueError(f"{field_name} must be an integer.") from exc
    else:
        raise ValueError(f"{field_name} must be an integer.")
    if coerced < 0:
        raise ValueError(f"{field_name} must be >= 0.")
    return coerced


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0"}:
            return False
    raise ValueError(f"{field_name} must be a boolean.")


def _coerce_optional_string(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _validate_normalized(cfg: dict[str, Any]) -> None:
    schema_version = cfg.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version:
        raise ValueError("scan config must include schema_version.")
    if schema_version != SCAN_CONFIG_SCHEMA_VERSION:
        raise ValueError(
            "Unsupported scan config schema_version: "
            f"{schema_version!r} (expected {SCAN_CONFIG_SCHEMA_VERSION!r})."
        )


def default_scan_config() -> dict[str, Any]:
    return {
        "schema_version": SCAN_CONFIG_SCHEMA_VERSION,
        "max_info_bytes": DEFAULT_MAX_INFO_BYTES,
        "pad_odd_chunks": False,
        "limit_to_riff_size": True,
    }


def normalize_scan_config(cfg: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(cfg, dict):
        raise ValueError("Scan config must be an object.")

    unknown = sorted(set(cfg.keys()) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ValueError(f"Unknown scan config field(s): {', '.join(unknown)}")

    normalized: dict[str, Any] = {}
    for key in sorted(cfg.keys()):
        value = cfg[key]
        if value is None:
            continue
        if key == "schema_version":
            normalized[key] = _coerce_optional_string(value)
        elif key == "max_info_bytes":
            normalized[key] = _coerce_non_negative_int(value, key)
        elif key in _BOOL_KEYS:
            normalized[key] = _coerce_bool(value, key)

    _validate_normalized(normalized)
    return normalized


def resolve_scan_config(cfg: dict[str, Any] | None) -> dict[str, Any]:
    """Return a normalized config with every option filled in from the defaults."""
    resolved = default_scan_config()
    if cfg:
        resolved.update(
            normalize_scan_config(
                {**cfg, "schema_version": cfg.get("schema_version", SCAN_CONFIG_SCHEMA_VERSION)}
            )
        )
    return resolved


def load_scan_config(path: Path) -> dict[str, Any]:
    """Load a scan config from JSON, or from YAML for ``.yaml``/``.yml`` paths."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read scan config {path}: {exc}") from exc

    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Scan config is not valid YAML: {path}") from exc
    else:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Scan config is not valid JSON: {path}") from exc

    if not isinstance(raw, dict):
        raise ValueError("Scan config must be an object.")
    return normalize_scan_config(raw)


def merge_scan_config(base_cfg: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(base_cfg, dict):
        raise ValueError("base_cfg must be an object.")
    if not isinstance(overrides, dict):
        raise ValueError("overrides must be an object.")

    base_normalized = normalize_scan_config(
        {**base_cfg, "schema_version": base_cfg.get("schema_version", SCAN_CONFIG_SCHEMA_VERSION)}
    )
    overrides_normalized = normalize_scan_config(
        {
            **overrides,
            "schema_version": overrides.get(
                "schema_version",
                base_normalized.get("schema_version", SCAN_CONFIG_SCHEMA_VERSION),
            ),
        }
    )
    merged = {**base_normalized, **overrides_normalized}
    return normalize_scan_config(merged)
