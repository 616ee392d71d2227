import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.core.config.scoring import (  # noqa: E402
    get_scoring_config,
    get_scoring_value,
    reset_scoring_config,
)
from ats_engine.services.scoring import scoring_weights  # noqa: E402
from ats_engine.services.system_simulation import load_system_configs, resolve_system_config  # noqa: E402


class ScoringConfigTests(unittest.TestCase):
    def tearDown(self):
        reset_scoring_config()

    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("scoring.weights.keywords"), 0.30)
        self.assertEqual(get_scoring_value("verification.max_score_adjustment"), 15)

    def test_missing_path_returns_default(self):
        self.assertEqual(get_scoring_value("scoring.weights.nope", 7), 7)
        self.assertEqual(get_scoring_value("scoring.weights.keywords.deeper", "x"), "x")
        self.assertIsNone(get_scoring_value(""))

    def test_composite_weights_sum_to_one(self):
        self.assertAlmostEqual(sum(scoring_weights().values()), 1.0)

    def test_system_profiles_are_read_only(self):
        systems = load_system_configs()
        self.assertEqual(
            set(systems),
            {"workday", "greenhouse", "lever", "smartrecruiters", "bamboohr", "icims", "taleo"},
        )
        with self.assertRaises(TypeError):
            systems["workday"] = systems["lever"]  # type: ignore[index]
        for name, profile in systems.items():
            config = resolve_system_config(name, profile)
            total = config.parsing_weight + config.keyword_weight + config.format_weight + config.content_weight
            self.assertAlmostEqual(total, 1.0, places=2)

    def test_env_override_and_section_validation(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("scoring:\n  pass_threshold: 60\nats_systems: {}\n", encoding="utf-8")
            with patch.dict(os.environ, {"ATS_SCORING_CONFIG": str(path)}):
                reset_scoring_config()
                with self.assertRaises(RuntimeError) as ctx:
                    get_scoring_config()
                self.assertIn("industries", str(ctx.exception))

                path.write_text(
                    "scoring:\n  pass_threshold: 60\nats_systems: {}\nindustries: {}\n", encoding="utf-8"
                )
                reset_scoring_config()
                self.assertEqual(get_scoring_value("scoring.pass_threshold"), 60)


if __name__ == "__main__":
    unittest.main()
