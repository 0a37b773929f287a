from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from core.settings_io import load_settings, load_settings_or_default, save_settings
from core.state import BLOCK_SIZE_PRESETS, MAX_BLOCK_SIZE, MIN_BLOCK_SIZE, MosaicSettings


class MosaicSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = MosaicSettings()
        self.assertEqual(settings.preset, "medium")
        self.assertEqual(settings.block_size, 10)
        self.assertFalse(settings.average_alpha)

    def test_presets(self) -> None:
        settings = MosaicSettings()
        for name, size in BLOCK_SIZE_PRESETS.items():
            settings.set_preset(name.upper())
            self.assertEqual(settings.preset, name)
            self.assertEqual(settings.block_size, size)
        with self.assertRaises(ValueError):
            settings.set_preset("huge")

    def test_custom_block_size_is_clamped(self) -> None:
        settings = MosaicSettings()
        settings.set_custom_block_size(1)
        self.assertEqual(settings.block_size, MIN_BLOCK_SIZE)
        settings.set_custom_block_size(500)
        self.assertEqual(settings.block_size, MAX_BLOCK_SIZE)
        settings.set_custom_block_size(17)
        self.assertEqual((settings.preset, settings.block_size), ("custom", 17))

    def test_custom_value_matching_preset_selects_it(self) -> None:
        settings = MosaicSettings()
        settings.set_custom_block_size(25)
        self.assertEqual(settings.preset, "large")


class SettingsIOTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        settings = MosaicSettings(average_alpha=True, last_open_dir="/tmp/in", last_save_dir=None)
        settings.set_custom_block_size(33)

        with TemporaryDirectory() as td:
            path = Path(td) / "nested" / "settings.json"
            save_settings(str(path), settings)
            loaded = load_settings(str(path))

        self.assertEqual(loaded.block_size, 33)
        self.assertEqual(loaded.preset, "custom")
        self.assertTrue(loaded.average_alpha)
        self.assertEqual(loaded.last_open_dir, "/tmp/in")
        self.assertIsNone(loaded.last_save_dir)

    def test_preset_wins_over_stored_size(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "settings.json"
            path.write_text('{"settings": {"preset": "xlarge", "block_size": 7}}', encoding="utf-8")
            loaded = load_settings(str(path))
        self.assertEqual(loaded.block_size, 40)

    def test_defaults_for_missing_or_unknown_fields(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "settings.json"
            path.write_text('{"settings": {"preset": "gigantic"}}', encoding="utf-8")
            loaded = load_settings(str(path))
        self.assertEqual(loaded.preset, "medium")
        self.assertEqual(loaded.block_size, 10)
        self.assertIsNone(loaded.last_open_dir)

    def test_load_or_default(self) -> None:
        with TemporaryDirectory() as td:
            missing = Path(td) / "missing.json"
            self.assertEqual(load_settings_or_default(str(missing)), MosaicSettings())

            broken = Path(td) / "broken.json"
            broken.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_settings_or_default(str(broken)), MosaicSettings())


if __name__ == "__main__":
    unittest.main()
