import json
import tempfile
import unittest
from pathlib import Path

from tests._test_path import SRC  # noqa: F401

from passportsheet.app.config import ConfigError, PipelineConfig, config_from_dict, load_config
from passportsheet.normalize.options import BackgroundColor, ClothingOption


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = load_config(env={})
        self.assertEqual(cfg, PipelineConfig())
        self.assertIsNone(cfg.api_key)
        self.assertEqual(cfg.backend, "gemini")

    def test_api_key_from_environment(self):
        self.assertEqual(load_config(env={"GEMINI_API_KEY": "k1", "API_KEY": "k2"}).api_key, "k1")
        self.assertEqual(load_config(env={"API_KEY": "k2"}).api_key, "k2")

    def test_json_file(self):
        data = {
            "crop": {"max_dimension": 1024, "quality": 0.8},
            "sheet": {"guide_color": [0, 0, 0], "sheet_border": True},
            "retry": {"max_retries": 1},
            "normalize": {"background": "blue", "clothing": "female-blazer", "backend": "rembg"},
        }
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "cfg.json"
            p.write_text(json.dumps(data), encoding="utf-8")
            cfg = load_config(p, env={})

        self.assertEqual(cfg.crop.max_dimension, 1024)
        self.assertAlmostEqual(cfg.crop.quality, 0.8)
        self.assertEqual(cfg.sheet.guide_color, (0, 0, 0))
        self.assertTrue(cfg.sheet.sheet_border)
        self.assertEqual(cfg.retry.max_retries, 1)
        self.assertIs(cfg.background, BackgroundColor.BLUE)
        self.assertIs(cfg.clothing, ClothingOption.FEMALE_BLAZER)
        self.assertEqual(cfg.backend, "rembg")

    def test_invalid_values(self):
        bad = [
            {"crop": {"max_dim": 1}},
            {"colour": {}},
            {"normalize": {"background": "green"}},
            {"normalize": {"clothing": "tuxedo"}},
            {"normalize": {"backend": "photoshop"}},
            {"retry": []},
        ]
        for data in bad:
            with self.assertRaises(ConfigError, msg=str(data)):
                config_from_dict(data, env={})

    def test_unreadable_file(self):
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "cfg.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(p, env={})
            with self.assertRaises(ConfigError):
                load_config(Path(d) / "missing.json", env={})
