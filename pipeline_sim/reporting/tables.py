"""Tabular views of simulation results for display and export."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from ..models.results import SimulationResult, StageStat, UnitOutcome


def stage_stats_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per stage, in pipeline order."""
    return pd.DataFrame(
        [
            {
                "stage_id": stat.stage_id,
                "stage_name": stat.stage_name,
                "input_count": stat.input_count,
                "pass_count": stat.pass_count,
                "fail_count": stat.fail_count,
                "yield_pct": stat.yield_pct,
                "avg_duration": stat.avg_duration,
            }
            for stat in result.stage_stats
        ]
    )


def histogram_frame(result: SimulationResult) -> pd.DataFrame:
    return pd.DataFrame(
        [{"bin": bucket.label, "count": bucket.count} for bucket in result.cycle_time_distribution]
    )


def yield_trend_frame(result: SimulationResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "stage_id": point.stage_id,
                "stage_name": point.stage_name,
                "cumulative_yield": point.cumulative_yield,
            }
            for point in result.yield_trend
        ]
    )


def unit_outcomes_frame(outcomes: Sequence[UnitOutcome]) -> pd.DataFrame:
    """
    Trace view with one row per unit, ordered by unit id.

    Per-stage durations and attempts are spread into ``<stage_id>_duration`` and
    ``<stage_id>_attempts`` columns; stages a unit never entered stay empty.
    """
    rows = []
    for outcome in sorted(outcomes, key=lambda item: item.unit_id):
        row = {
            "unit_id": outcome.unit_id,
            "is_scrap": outcome.is_scrap,
            "failed_at_stage_id": outcome.failed_at_stage_id,
            "total_cycle_time": outcome.total_cycle_time,
        }
        for stage_id, detail in outcome.stage_outcomes.items():
            row[f"{stage_id}_duration"] = detail.duration
            row[f"{stage_id}_attempts"] = detail.attempts_to_pass
        rows.append(row)
    return pd.DataFrame(rows)


def lowest_yield_stage(result: SimulationResult) -> StageStat:
    """Stage with the lowest yield; the earliest one wins ties."""
    return min(result.stage_stats, key=lambda stat: stat.yield_pct)


def longest_stage(result: SimulationResult) -> StageStat:
    """Stage with the largest average duration; the earliest one wins ties."""
    return max(result.stage_stats, key=lambda stat: stat.avg_duration)


__all__ = [
    "histogram_frame",
    "longest_stage",
    "lowest_yield_stage",
    "stage_stats_frame",
    "unit_outcomes_frame",
    "yield_trend_frame",
]
