import json
import tempfile
import unittest
from pathlib import Path

from pipeline_sim.core.config_loader import (
    default_pipeline_config,
    load_pipeline_config,
    parse_pipeline_text,
    save_pipeline_config,
)
from pipeline_sim.core.validator import InvalidConfiguration

REFERENCE_JSON = """
{
  "simulationCount": 1000,
  "stages": [
    {"id": "s1", "name": "Mechanical Assembly", "meanDurationMinutes": 45,
     "failureProbability": 0.02, "reworkEnabled": true, "reworkTimePenaltyMinutes": 30},
    {"id": "s3", "name": "Calibration", "meanDurationMinutes": 30,
     "failureProbability": 0.10, "reworkEnabled": false}
  ]
}
"""

REFERENCE_YAML = """
simulation_count: 400
stages:
  - id: cut
    name: Cutting
    mean_duration_minutes: 12.5
    failure_probability: 0.2
    rework_enabled: yes
    rework_time_penalty_minutes: 4
  - id: pack
    name: Packing
    mean_duration_minutes: 3
    failure_probability: 0
"""


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_parse_reference_json(self) -> None:
        config = parse_pipeline_text(REFERENCE_JSON)
        self.assertEqual(config.simulation_count, 1000)
        self.assertEqual(config.stage_ids, ("s1", "s3"))
        self.assertEqual(config.stage("s3").rework_time_penalty_minutes, 0.0)
        self.assertEqual(config.stage("s1").rework_time_penalty_minutes, 30.0)

    def test_parse_yaml(self) -> None:
        config = parse_pipeline_text(REFERENCE_YAML, fmt="yaml")
        self.assertEqual(config.simulation_count, 400)
        self.assertTrue(config.stage("cut").rework_enabled)
        self.assertEqual(config.stage("pack").failure_probability, 0.0)

    def test_json_round_trip(self) -> None:
        config = default_pipeline_config()
        path = save_pipeline_config(config, self.tmp / "pipeline.json")
        self.assertEqual(load_pipeline_config(path), config)
        payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["stages"][0]["id"], "s1")

    def test_yaml_round_trip_keeps_stage_order(self) -> None:
        config = parse_pipeline_text(REFERENCE_YAML, fmt="yaml")
        path = save_pipeline_config(config, self.tmp / "nested" / "pipeline.yml")
        loaded = load_pipeline_config(path)
        self.assertEqual(loaded.stage_ids, ("cut", "pack"))
        self.assertEqual(loaded, config)

    def test_unsupported_suffix(self) -> None:
        path = self.tmp / "pipeline.toml"
        path.write_text("stages = []", encoding="utf-8")
        with self.assertRaises(InvalidConfiguration):
            load_pipeline_config(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(InvalidConfiguration) as ctx:
            load_pipeline_config(self.tmp / "absent.json")
        self.assertIn("File not found", str(ctx.exception))

    def test_malformed_json(self) -> None:
        path = self.tmp / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with self.assertRaises(InvalidConfiguration):
            load_pipeline_config(path)

    def test_top_level_list_is_rejected(self) -> None:
        with self.assertRaises(InvalidConfiguration):
            parse_pipeline_text("- 1\n- 2\n", fmt="yaml")

    def test_file_errors_keep_stage_details(self) -> None:
        path = self.tmp / "bad.json"
        path.write_text(REFERENCE_JSON.replace("0.10", "1.10"), encoding="utf-8")
        with self.assertRaises(InvalidConfiguration) as ctx:
            load_pipeline_config(path)
        self.assertEqual(ctx.exception.stage_id, "s3")
        self.assertEqual(ctx.exception.field, "failure_probability")
        self.assertIn(str(path), str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
