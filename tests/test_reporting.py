import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from pipeline_sim.core.config_loader import default_pipeline_config
from pipeline_sim.engine import simulate_with_outcomes
from pipeline_sim.models.results import SimulationResult, StageStat
from pipeline_sim.reporting import (
    ReportGenerator,
    histogram_frame,
    longest_stage,
    lowest_yield_stage,
    stage_stats_frame,
    unit_outcomes_frame,
    yield_trend_frame,
)


def stat(stage_id: str, yield_pct: float, avg_duration: float) -> StageStat:
    return StageStat(
        stage_id=stage_id,
        stage_name=stage_id.upper(),
        input_count=10,
        pass_count=int(yield_pct / 10),
        fail_count=10 - int(yield_pct / 10),
        yield_pct=yield_pct,
        avg_duration=avg_duration,
    )


class ReportingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.config = default_pipeline_config().model_copy(update={"simulation_count": 300})
        cls.result, cls.outcomes = simulate_with_outcomes(cls.config, seed=42)

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_export_all_writes_every_artefact(self) -> None:
        reporter = ReportGenerator(self.tmp)
        paths = reporter.export_all(self.result, self.config, self.outcomes)
        self.assertEqual(
            set(paths),
            {"summary", "stage_stats", "cycle_time_histogram", "yield_trend", "pipeline_config", "unit_outcomes"},
        )
        for path in paths.values():
            self.assertTrue(path.exists(), path)

        summary = json.loads(paths["summary"].read_text(encoding="utf-8"))
        self.assertAlmostEqual(summary["overallYield"], self.result.overall_yield)
        self.assertEqual(summary["validation"]["status"], "PASS")
        self.assertEqual(len(pd.read_csv(paths["stage_stats"])), 5)
        self.assertEqual(len(pd.read_csv(paths["unit_outcomes"])), 300)

    def test_unit_outcomes_only_with_trace(self) -> None:
        paths = ReportGenerator(self.tmp).export_all(self.result, self.config)
        self.assertNotIn("unit_outcomes", paths)

    def test_timestamped_run_directory(self) -> None:
        reporter = ReportGenerator(self.tmp, timestamped=True, run_label="whatif_a")
        path = reporter.export_pipeline_config(self.config)
        self.assertEqual(path.parent, self.tmp / "whatif_a")
        payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["simulation_count"], 300)
        self.assertEqual(len(payload["stages"]), 5)

    def test_frames(self) -> None:
        stages = stage_stats_frame(self.result)
        self.assertEqual(list(stages["stage_id"]), ["s1", "s2", "s3", "s4", "s5"])
        self.assertEqual(int(stages.loc[0, "input_count"]), 300)

        histogram = histogram_frame(self.result)
        self.assertEqual(list(histogram.columns), ["bin", "count"])
        self.assertEqual(int(histogram["count"].sum()), self.result.good_units)

        trend = yield_trend_frame(self.result)
        self.assertTrue(trend["cumulative_yield"].is_monotonic_decreasing)

    def test_unit_outcomes_frame_is_ordered_and_sparse(self) -> None:
        frame = unit_outcomes_frame(list(reversed(self.outcomes)))
        self.assertEqual(list(frame["unit_id"]), list(range(300)))
        self.assertIn("s1_duration", frame.columns)
        self.assertIn("s5_attempts", frame.columns)
        scrapped = frame[frame["is_scrap"]]
        for _, row in scrapped.iterrows():
            if row["failed_at_stage_id"] != "s5":
                self.assertTrue(pd.isna(row["s5_duration"]))

    def test_highlight_stages_prefer_earliest_on_ties(self) -> None:
        result = SimulationResult(
            total_units=10,
            good_units=5,
            scrapped_units=5,
            overall_yield=50.0,
            avg_cycle_time=0.0,
            cycle_time_p95=0.0,
            stage_stats=(stat("a", 80.0, 5.0), stat("b", 60.0, 9.0), stat("c", 60.0, 9.0)),
            cycle_time_distribution=(),
            yield_trend=(),
        )
        self.assertEqual(lowest_yield_stage(result).stage_id, "b")
        self.assertEqual(longest_stage(result).stage_id, "b")


if __name__ == "__main__":
    unittest.main()
