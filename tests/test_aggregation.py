import unittest

from pipeline_sim.core.aggregation import (
    aggregate,
    cycle_time_histogram,
    nearest_rank_percentile,
    stage_statistics,
)
from pipeline_sim.models.pipeline import StageSpec
from pipeline_sim.models.results import StageOutcome, UnitOutcome


def make_stages():
    return [
        StageSpec(id=sid, name=name, mean_duration_minutes=10.0, failure_probability=0.1)
        for sid, name in (("s1", "Assembly"), ("s2", "Test"), ("s3", "QC"))
    ]


def unit(unit_id: int, durations, failed_last: bool = False) -> UnitOutcome:
    """Build a unit that entered ``len(durations)`` stages; optionally scrapped at the last one."""
    outcomes = {}
    for index, duration in enumerate(durations):
        failed = failed_last and index == len(durations) - 1
        outcomes[f"s{index + 1}"] = StageOutcome(
            duration=duration, attempts_to_pass=0 if failed else 1, failed=failed
        )
    return UnitOutcome(
        unit_id=unit_id,
        is_scrap=failed_last,
        failed_at_stage_id=f"s{len(durations)}" if failed_last else None,
        total_cycle_time=float(sum(durations)),
        stage_outcomes=outcomes,
    )


class PercentileTests(unittest.TestCase):
    def test_nearest_rank_takes_largest_of_ten(self) -> None:
        values = [100, 90, 80, 70, 60, 50, 40, 30, 20, 10]
        self.assertEqual(nearest_rank_percentile(values), 100.0)

    def test_nearest_rank_without_interpolation(self) -> None:
        values = list(range(30, 0, -1))  # rank floor(28.5) -> 29th value
        self.assertEqual(nearest_rank_percentile(values), 29.0)

    def test_empty_sample_is_zero(self) -> None:
        self.assertEqual(nearest_rank_percentile([]), 0.0)


class HistogramTests(unittest.TestCase):
    def test_bins_span_observed_range_and_clamp_upper_edge(self) -> None:
        bins = cycle_time_histogram([0.0, 50.0, 100.0, 150.0, 200.0])
        self.assertEqual(len(bins), 20)
        self.assertEqual([b.label for b in bins][:3], ["0", "10", "20"])
        self.assertEqual(bins[-1].label, "190")
        counts = [b.count for b in bins]
        self.assertEqual(sum(counts), 5)
        self.assertEqual(counts[0], 1)
        self.assertEqual(counts[5], 1)
        self.assertEqual(counts[10], 1)
        self.assertEqual(counts[15], 1)
        self.assertEqual(counts[19], 1)

    def test_range_never_narrower_than_zero_to_hundred(self) -> None:
        bins = cycle_time_histogram([42.0, 43.0])
        self.assertEqual([b.label for b in bins][:2], ["0", "5"])
        self.assertEqual(bins[8].count, 2)

    def test_no_good_units_gives_default_empty_bins(self) -> None:
        bins = cycle_time_histogram([])
        self.assertEqual(len(bins), 20)
        self.assertEqual(bins[-1].label, "95")
        self.assertTrue(all(b.count == 0 for b in bins))

    def test_labels_are_in_ascending_numeric_order(self) -> None:
        bins = cycle_time_histogram([12.5, 333.3, 250.0])
        labels = [int(b.label) for b in bins]
        self.assertEqual(labels, sorted(labels))


class AggregateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.stages = make_stages()
        self.outcomes = [
            unit(0, [10.0, 20.0, 30.0]),
            unit(1, [12.0, 18.0, 40.0]),
            unit(2, [11.0], failed_last=True),
            unit(3, [9.0, 25.0], failed_last=True),
            unit(4, [10.0, 20.0, 5.0], failed_last=True),
        ]
        self.result = aggregate(self.outcomes, self.stages, 5)

    def test_overall_counts(self) -> None:
        self.assertEqual(self.result.total_units, 5)
        self.assertEqual(self.result.good_units, 2)
        self.assertEqual(self.result.scrapped_units, 3)
        self.assertAlmostEqual(self.result.overall_yield, 40.0)
        self.assertAlmostEqual(self.result.scrap_rate, 60.0)

    def test_cycle_time_statistics_use_good_units_only(self) -> None:
        self.assertAlmostEqual(self.result.avg_cycle_time, (60.0 + 70.0) / 2)
        self.assertEqual(self.result.cycle_time_p95, 70.0)
        self.assertEqual(sum(b.count for b in self.result.cycle_time_distribution), 2)

    def test_stage_statistics(self) -> None:
        s1, s2, s3 = self.result.stage_stats
        self.assertEqual((s1.input_count, s1.pass_count, s1.fail_count), (5, 4, 1))
        self.assertEqual((s2.input_count, s2.pass_count, s2.fail_count), (4, 3, 1))
        self.assertEqual((s3.input_count, s3.pass_count, s3.fail_count), (3, 2, 1))
        self.assertAlmostEqual(s1.yield_pct, 80.0)
        self.assertAlmostEqual(s3.yield_pct, 200.0 / 3)
        self.assertAlmostEqual(s1.avg_duration, (10 + 12 + 11 + 9 + 10) / 5)
        self.assertAlmostEqual(s3.avg_duration, 25.0)
        self.assertEqual([s.stage_name for s in self.result.stage_stats], ["Assembly", "Test", "QC"])

    def test_yield_trend_is_against_total_units(self) -> None:
        trend = [point.cumulative_yield for point in self.result.yield_trend]
        self.assertEqual(trend, [80.0, 60.0, 40.0])
        self.assertLessEqual(trend[-1], self.result.overall_yield)

    def test_stage_never_entered_reports_zeros(self) -> None:
        outcomes = [unit(0, [5.0], failed_last=True), unit(1, [6.0], failed_last=True)]
        result = aggregate(outcomes, self.stages, 2)
        last = result.stage_stats[-1]
        self.assertEqual((last.input_count, last.pass_count, last.fail_count), (0, 0, 0))
        self.assertEqual(last.yield_pct, 0.0)
        self.assertEqual(last.avg_duration, 0.0)
        self.assertEqual(result.avg_cycle_time, 0.0)
        self.assertEqual(result.cycle_time_p95, 0.0)
        self.assertEqual(result.overall_yield, 0.0)

    def test_stage_statistics_frame_follows_pipeline_order(self) -> None:
        frame = stage_statistics(self.outcomes, list(reversed(self.stages)))
        self.assertEqual(list(frame.index), ["s3", "s2", "s1"])
        self.assertEqual(frame.loc["s2", "input_count"], 4)

    def test_result_is_immutable(self) -> None:
        with self.assertRaises(Exception):
            self.result.good_units = 5  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
