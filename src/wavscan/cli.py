from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from wavscan import __version__
from wavscan.core.report import build_summary, render_summary_text, validate_summary
from wavscan.core.run_config import load_scan_config, merge_scan_config
from wavscan.dsp.chunks import WavParseError
from wavscan.dsp.io import WavOpenError, read_wav_path

EXIT_OK = 0
EXIT_USAGE = -1
EXIT_OPEN = -2
EXIT_FORMAT = -3
EXIT_CONFIG = -4


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wavscan",
        description="Walk the chunks of a RIFF/WAVE file and summarize its format.",
    )
    parser.add_argument("path", help="Path to a WAV file.")
    parser.add_argument(
        "--config",
        default=None,
        help="Optional scan config file (JSON, or YAML for .yaml/.yml).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=["text", "json"],
        default="text",
        help="Summary output format.",
    )
    parser.add_argument("--out", default=None, help="Optional output path for the summary.")
    parser.add_argument(
        "--pad",
        action="store_true",
        help="Skip the RIFF pad byte after odd-sized chunks.",
    )
    parser.add_argument(
        "--no-riff-limit",
        action="store_true",
        help="Keep scanning past the extent declared by the RIFF header.",
    )
    parser.add_argument(
        "--max-info-bytes",
        type=int,
        default=None,
        help="Largest LIST INFO text accepted, in bytes.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log each chunk as it is processed.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _scan_config_from_args(args: argparse.Namespace) -> dict[str, Any]:
    base: dict[str, Any] = {}
    if args.config:
        base = load_scan_config(Path(args.config))

    overrides: dict[str, Any] = {}
    if args.pad:
        overrides["pad_odd_chunks"] = True
    if args.no_riff_limit:
        overrides["limit_to_riff_size"] = False
    if args.max_info_bytes is not None:
        overrides["max_info_bytes"] = args.max_info_bytes
    return merge_scan_config(base, overrides)


def _write_output(text: str, out: str | None) -> None:
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code in (0, None):
            raise
        return EXIT_USAGE

    _configure_logging(args.verbose)

    try:
        scan_config = _scan_config_from_args(args)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG

    path = Path(args.path)
    try:
        file_stat = path.stat()
        result = read_wav_path(path, scan_config)
    except WavParseError as exc:
        print(f"Invalid WAV file '{path}': {exc}", file=sys.stderr)
        return EXIT_FORMAT
    except WavOpenError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_OPEN
    except OSError as exc:
        print(f"Can not open file '{path}': {exc}", file=sys.stderr)
        return EXIT_OPEN

    try:
        payload = build_summary(result, path=path, file_stat=file_stat)
        validate_summary(payload)
    except ValueError as exc:
        print(f"Invalid WAV file '{path}': {exc}", file=sys.stderr)
        return EXIT_FORMAT
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG

    if args.output_format == "json":
        output = json.dumps(payload, indent=2, sort_keys=True)
    else:
        output = render_summary_text(payload)
    _write_output(output, args.out)
    return EXIT_OK
