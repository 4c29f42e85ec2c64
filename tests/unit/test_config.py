import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from support import load_test_font

from makequote_core.config import AppConfig, load_config, producer_config_from, save_config


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "missing.json"
            cfg = load_config(path)
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual((cfg.output.width, cfg.output.height), (1920, 1080))
            self.assertEqual(cfg.output.font_scale, 120.0)
            self.assertEqual(cfg.style.theme, "Classic")
            self.assertIsNone(cfg.fonts.regular_path)

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.output.width = 800
            cfg.style.theme = "Sepia"
            cfg.fonts.bold_path = "/fonts/bold.ttf"
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.output.width, 800)
            self.assertEqual(reloaded.style.theme, "Sepia")
            self.assertEqual(reloaded.fonts.bold_path, "/fonts/bold.ttf")

    def test_migrate_v1_shape(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            old = {
                "width": 1280,
                "height": 720,
                "font_scale": 64,
                "format": "PNG",
                "font_path": "/fonts/regular.ttf",
            }
            path.write_text(json.dumps(old), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.config_version, 2)
            self.assertEqual((cfg.output.width, cfg.output.height), (1280, 720))
            self.assertEqual(cfg.output.font_scale, 64.0)
            self.assertEqual(cfg.output.format, "png")
            self.assertEqual(cfg.fonts.regular_path, "/fonts/regular.ttf")

    def test_invalid_values_are_normalised(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "config_version": 2,
                "output": {"width": 0, "height": "abc", "font_scale": -3, "format": "gif", "quality": 400},
                "style": {"theme": "Neon", "text_gap": -5, "fallback_char": ""},
                "performance": {"render_ms_max": 1},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.output.width, 1)
            self.assertEqual(cfg.output.height, 1080)
            self.assertEqual(cfg.output.font_scale, 120.0)
            self.assertEqual(cfg.output.format, "jpeg")
            self.assertEqual(cfg.output.quality, 95)
            self.assertEqual(cfg.style.theme, "Classic")
            self.assertEqual(cfg.style.text_gap, 0)
            self.assertEqual(cfg.style.fallback_char, "\ufffd")
            self.assertEqual(cfg.performance.render_ms_max, 50.0)

    def test_font_scale_is_capped(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"config_version": 2, "output": {"font_scale": 1e9}}), encoding="utf-8")
            self.assertEqual(load_config(path).output.font_scale, 4096.0)

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())

    def test_producer_config_from(self):
        cfg = AppConfig()
        cfg.output.width, cfg.output.height = 640, 360
        cfg.output.format = "png"
        cfg.style.theme = "Midnight"
        config = producer_config_from(cfg, load_test_font())
        self.assertEqual(config.output_size, (640, 360))
        self.assertEqual(config.output_format, "png")
        self.assertEqual(config.theme, "Midnight")
        self.assertEqual(config.font_scale, 120.0)


if __name__ == "__main__":
    unittest.main()
