"""Tests for the packaged data resolver (wavscan.resources)."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock


class TestDataRoot(unittest.TestCase):
    def test_data_root_returns_path_with_schemas(self) -> None:
        from wavscan.resources import data_root

        root = data_root()
        self.assertIsInstance(root, Path)
        self.assertTrue(
            (root / "schemas").is_dir(),
            f"Expected {root / 'schemas'} to be a directory",
        )

    def test_schemas_dir_contains_summary_schema(self) -> None:
        from wavscan.resources import schemas_dir

        d = schemas_dir()
        self.assertTrue(d.is_dir())
        self.assertTrue(
            (d / "wav_summary.schema.json").is_file(),
            "Expected wav_summary.schema.json in schemas_dir",
        )


class TestDataRootEnvOverride(unittest.TestCase):
    def test_wavscan_data_root_override_valid(self) -> None:
        from wavscan.resources import data_root

        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "schemas").mkdir()
            with mock.patch.dict(os.environ, {"WAVSCAN_DATA_ROOT": tmp}):
                root = data_root()
            self.assertEqual(root, Path(tmp).resolve())

    def test_wavscan_data_root_override_invalid_raises(self) -> None:
        from wavscan.resources import data_root

        with tempfile.TemporaryDirectory() as tmp:
            # No schemas/ inside tmp.
            with mock.patch.dict(os.environ, {"WAVSCAN_DATA_ROOT": tmp}):
                with self.assertRaises(RuntimeError):
                    data_root()


if __name__ == "__main__":
    unittest.main()
