"""
Tests for the engine config record.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from ikemen_assets.engine_config import (
    build_motif_record, get_active_motif, read_engine_config, set_active_motif
)
from ikemen_assets.errors import CapabilityDenied
from ikemen_assets.storage import DirectoryRoot, SnapshotRoot


class TestMotifRecord(unittest.TestCase):
    """Test motif record helpers."""

    def test_build_keeps_other_keys(self):
        """Test unrelated settings survive."""
        record = build_motif_record("data/pack/system.def", {"Fullscreen": True, "motif": "data/system.def"})

        self.assertEqual(record, {"Fullscreen": True, "motif": "data/pack/system.def"})

    def test_build_updates_capitalized_key(self):
        """Test an existing capitalized key is updated too."""
        record = build_motif_record("data/pack/system.def", {"Motif": "data/system.def"})

        self.assertEqual(record["Motif"], "data/pack/system.def")
        self.assertEqual(record["motif"], "data/pack/system.def")

    def test_build_does_not_mutate(self):
        """Test the existing record is left alone."""
        existing = {"motif": "old"}
        build_motif_record("new", existing)
        self.assertEqual(existing, {"motif": "old"})

    def test_get_active_motif(self):
        """Test reading the motif with normalized separators."""
        self.assertEqual(get_active_motif({"Motif": "data\\pack\\system.def"}), "data/pack/system.def")
        self.assertIsNone(get_active_motif({}))


class TestEngineConfigStorage(unittest.TestCase):
    """Test reading and writing the record through roots."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.base = Path(self.temp_dir)
        self.root = DirectoryRoot(self.base)

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_read_missing(self):
        """Test a missing record reads as None."""
        self.assertIsNone(read_engine_config(self.root))
        self.assertIsNone(read_engine_config(None))

    def test_read_invalid_json(self):
        """Test a corrupt record reads as None."""
        (self.base / "save").mkdir()
        (self.base / "save" / "config.json").write_text("{not json")
        self.assertIsNone(read_engine_config(self.root))

    def test_set_active_motif_creates_record(self):
        """Test activation writes a new record."""
        set_active_motif(self.root, "data/pack/system.def")

        data = json.loads((self.base / "save" / "config.json").read_text())
        self.assertEqual(data, {"motif": "data/pack/system.def"})

    def test_set_active_motif_merges(self):
        """Test activation keeps existing settings."""
        (self.base / "save").mkdir()
        (self.base / "save" / "config.json").write_text(json.dumps({"GameWidth": 640, "Motif": "data/system.def"}))

        record = set_active_motif(self.root, "data/pack/system.def")

        self.assertEqual(record["GameWidth"], 640)
        self.assertEqual(read_engine_config(self.root)["Motif"], "data/pack/system.def")

    def test_read_only_root_refused(self):
        """Test activation on a snapshot root is refused."""
        root = SnapshotRoot([("game/save/config.json", b"{}")])

        with self.assertRaises(CapabilityDenied):
            set_active_motif(root, "data/pack/system.def")
        with self.assertRaises(CapabilityDenied):
            set_active_motif(None, "data/pack/system.def")


if __name__ == '__main__':
    unittest.main()
