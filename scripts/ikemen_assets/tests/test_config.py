"""
Tests for toolkit configuration loading and validation.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ikemen_assets.config import AssetConfig


class TestAssetConfig(unittest.TestCase):
    """Test AssetConfig functionality."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        """Test default values."""
        config = AssetConfig()

        self.assertEqual(config.definition_extension, ".def")
        self.assertEqual(config.motif_filename, "system.def")
        self.assertIn("select.def", config.reserved_definitions)
        self.assertEqual((config.portrait_group, config.portrait_index), (9000, 1))
        self.assertEqual(config.max_subfiles, 3000)
        self.assertIsNone(config.download_timeout)
        self.assertEqual(config.validate(), [])

    def test_reserved_lists_are_independent(self):
        """Test each instance gets its own reserved list."""
        first = AssetConfig()
        first.reserved_definitions.append("extra.def")
        self.assertNotIn("extra.def", AssetConfig().reserved_definitions)

    def test_from_toml(self):
        """Test loading a TOML file."""
        path = Path(self.temp_dir) / "ikemen_assets.toml"
        path.write_text(
            '[definitions]\n'
            'reserved = ["select.def"]\n'
            '\n'
            '[paths]\n'
            'stages_prefix = "arenas"\n'
            '\n'
            '[portrait]\n'
            'group = 9001\n'
            'max_subfiles = 50\n'
            '\n'
            '[download]\n'
            'timeout = 12.5\n'
        )

        config = AssetConfig.from_file(path)

        self.assertEqual(config.reserved_definitions, ["select.def"])
        self.assertEqual(config.stages_prefix, "arenas")
        self.assertEqual(config.data_prefix, "data")
        self.assertEqual(config.portrait_group, 9001)
        self.assertEqual(config.max_subfiles, 50)
        self.assertEqual(config.download_timeout, 12.5)

    def test_from_json(self):
        """Test loading a JSON file."""
        path = Path(self.temp_dir) / "ikemen_assets.json"
        path.write_text(json.dumps({
            "definitions": {"extension": ".DEF"},
            "download": {"user_agent": "Tester/2", "chunk_size": 1024},
        }))

        config = AssetConfig.from_file(path)

        self.assertEqual(config.definition_extension, ".DEF")
        self.assertEqual(config.user_agent, "Tester/2")
        self.assertEqual(config.chunk_size, 1024)

    def test_missing_file(self):
        """Test loading a missing file."""
        with self.assertRaises(FileNotFoundError):
            AssetConfig.from_file(Path(self.temp_dir) / "missing.toml")

    def test_unsupported_format(self):
        """Test loading an unsupported format."""
        path = Path(self.temp_dir) / "config.yaml"
        path.write_text("a: 1")
        with self.assertRaises(ValueError):
            AssetConfig.from_file(path)

    @patch.dict(os.environ, {
        "IKEMEN_ASSETS_RESERVED_DEFINITIONS": "intro.def, ending.def ,",
        "IKEMEN_ASSETS_PORTRAIT_GROUP": "9002",
        "IKEMEN_ASSETS_DOWNLOAD_TIMEOUT": "30",
        "IKEMEN_ASSETS_ENGINE_CONFIG": "save/alt.json",
    })
    def test_env_overrides(self):
        """Test environment variables override defaults."""
        config = AssetConfig.default()

        self.assertEqual(config.reserved_definitions, ["intro.def", "ending.def"])
        self.assertEqual(config.portrait_group, 9002)
        self.assertEqual(config.download_timeout, 30.0)
        self.assertEqual(config.engine_config_path, "save/alt.json")

    def test_is_definition_case_insensitive(self):
        """Test definition detection ignores case."""
        config = AssetConfig()

        self.assertTrue(config.is_definition("KFM.DEF"))
        self.assertFalse(config.is_definition("kfm.sff"))

    def test_is_reserved_case_insensitive(self):
        """Test reserved detection ignores case."""
        config = AssetConfig()

        self.assertTrue(config.is_reserved("Select.def"))
        self.assertFalse(config.is_reserved("kfm.def"))

    def test_validate_errors(self):
        """Test validation reports every bad value."""
        config = AssetConfig(
            definition_extension="def",
            portrait_group=70000,
            max_subfiles=0,
            download_timeout=-1,
            chunk_size=0,
        )

        errors = config.validate()

        self.assertIn("definition_extension must start with '.'", errors)
        self.assertIn("portrait_group must be between 0 and 65535", errors)
        self.assertIn("max_subfiles must be positive", errors)
        self.assertIn("download_timeout must be positive when set", errors)
        self.assertIn("chunk_size must be positive", errors)


if __name__ == '__main__':
    unittest.main()
