import json
import tempfile
import unittest
from pathlib import Path

from wavscan.core.run_config import (
    SCAN_CONFIG_SCHEMA_VERSION,
    default_scan_config,
    load_scan_config,
    merge_scan_config,
    normalize_scan_config,
    resolve_scan_config,
)


class TestScanConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(
            default_scan_config(),
            {
                "schema_version": SCAN_CONFIG_SCHEMA_VERSION,
                "max_info_bytes": 255,
                "pad_odd_chunks": False,
                "limit_to_riff_size": True,
            },
        )

    def test_normalize_coerces_values(self) -> None:
        normalized = normalize_scan_config(
            {
                "schema_version": " 0.1.0 ",
                "max_info_bytes": "128",
                "pad_odd_chunks": "no",
                "limit_to_riff_size": None,
            }
        )
        self.assertEqual(
            normalized,
            {
                "schema_version": "0.1.0",
                "max_info_bytes": 128,
                "pad_odd_chunks": False,
            },
        )

    def test_unknown_fields_are_rejected(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            normalize_scan_config({"schema_version": "0.1.0", "verbose": True})
        self.assertIn("verbose", str(ctx.exception))

    def test_negative_limit_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            normalize_scan_config({"schema_version": "0.1.0", "max_info_bytes": -1})

    def test_bool_limit_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            normalize_scan_config({"schema_version": "0.1.0", "max_info_bytes": True})

    def test_non_boolean_flag_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            normalize_scan_config({"schema_version": "0.1.0", "pad_odd_chunks": 3})

    def test_schema_version_is_required(self) -> None:
        with self.assertRaises(ValueError):
            normalize_scan_config({"max_info_bytes": 10})

    def test_unsupported_schema_version(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            normalize_scan_config({"schema_version": "9.9.9"})
        self.assertIn("9.9.9", str(ctx.exception))

    def test_resolve_fills_defaults(self) -> None:
        resolved = resolve_scan_config({"pad_odd_chunks": True})
        self.assertTrue(resolved["pad_odd_chunks"])
        self.assertTrue(resolved["limit_to_riff_size"])
        self.assertEqual(resolved["max_info_bytes"], 255)

    def test_resolve_none_returns_defaults(self) -> None:
        self.assertEqual(resolve_scan_config(None), default_scan_config())

    def test_merge_overrides_win(self) -> None:
        merged = merge_scan_config(
            {"schema_version": "0.1.0", "max_info_bytes": 64, "pad_odd_chunks": True},
            {"pad_odd_chunks": False},
        )
        self.assertEqual(
            merged,
            {"schema_version": "0.1.0", "max_info_bytes": 64, "pad_odd_chunks": False},
        )

    def test_merge_empty_inputs(self) -> None:
        self.assertEqual(merge_scan_config({}, {}), {"schema_version": "0.1.0"})


class TestLoadScanConfig(unittest.TestCase):
    def test_load_json(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "scan.json"
            path.write_text(
                json.dumps({"schema_version": "0.1.0", "max_info_bytes": 100}),
                encoding="utf-8",
            )
            cfg = load_scan_config(path)
        self.assertEqual(cfg, {"schema_version": "0.1.0", "max_info_bytes": 100})

    def test_load_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "scan.yaml"
            path.write_text(
                'schema_version: "0.1.0"\npad_odd_chunks: false\nlimit_to_riff_size: true\n',
                encoding="utf-8",
            )
            cfg = load_scan_config(path)
        self.assertEqual(
            cfg,
            {"schema_version": "0.1.0", "pad_odd_chunks": False, "limit_to_riff_size": True},
        )

    def test_invalid_json_raises_value_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "scan.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_scan_config(path)

    def test_invalid_yaml_raises_value_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "scan.yml"
            path.write_text("schema_version: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_scan_config(path)

    def test_non_mapping_raises_value_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "scan.yaml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_scan_config(path)

    def test_missing_file_raises_value_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(ValueError):
                load_scan_config(Path(temp_dir) / "absent.json")


if __name__ == "__main__":
    unittest.main()
