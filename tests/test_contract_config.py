from __future__ import annotations

import unittest

from pollgrid.config import DEFAULT_CONFIG, EditorConfig, load_config


class TestConfigContract(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = load_config({})
        self.assertEqual(cfg, DEFAULT_CONFIG)
        self.assertEqual((cfg.creation_horizon_years, cfg.scroll_horizon_years), (2, 5))
        self.assertEqual((cfg.long_press_ms, cfg.move_tolerance_px, cfg.haptic_ms), (500, 10, 50))

    def test_env_overlay(self) -> None:
        cfg = load_config({"POLLGRID_DEFAULT_GRANULARITY": "15", "POLLGRID_LONG_PRESS_MS": " 300 ", "POLLGRID_END_HOUR": ""})
        self.assertEqual((cfg.default_granularity, cfg.long_press_ms, cfg.end_hour), (15, 300, 20))

    def test_base_is_respected(self) -> None:
        cfg = load_config({"POLLGRID_HAPTIC_MS": "0"}, base=EditorConfig(initial_months=3))
        self.assertEqual((cfg.initial_months, cfg.haptic_ms), (3, 0))

    def test_bad_values(self) -> None:
        for env in (
            {"POLLGRID_LONG_PRESS_MS": "soon"},
            {"POLLGRID_IMPORT_GRANULARITY": "45"},
            {"POLLGRID_MAX_VISIBLE_MONTHS": "0"},
        ):
            with self.assertRaises(ValueError):
                load_config(env)


if __name__ == "__main__":
    unittest.main(verbosity=2)
