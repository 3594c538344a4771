"""Reduction of unit outcomes into yield, cycle-time and per-stage statistics."""

from __future__ import annotations

from math import floor
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import (
    HISTOGRAM_BIN_COUNT,
    HISTOGRAM_DEFAULT_MAX,
    HISTOGRAM_DEFAULT_MIN,
    HISTOGRAM_FALLBACK_WIDTH,
    P95_QUANTILE,
)
from ..models.pipeline import StageSpec
from ..models.results import (
    HistogramBin,
    SimulationResult,
    StageStat,
    UnitOutcome,
    YieldTrendPoint,
)

ENTRY_COLUMNS = ["unit_id", "stage_id", "duration", "failed"]


def nearest_rank_percentile(values: Sequence[float], quantile: float = P95_QUANTILE) -> float:
    """
    Value at zero-based rank ``floor(quantile * n)`` of the ascending sample.

    No interpolation: for ten values the 95th percentile is the largest one.
    Returns 0 for an empty sample.
    """
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    rank = min(int(floor(quantile * len(ordered))), len(ordered) - 1)
    return float(ordered[rank])


def cycle_time_histogram(
    good_times: Sequence[float], bin_count: int = HISTOGRAM_BIN_COUNT
) -> Tuple[HistogramBin, ...]:
    """
    Fixed-count histogram of good-unit cycle times.

    The range always spans at least [0, 100]; every time lands in a bin, with
    values at the upper edge clamped into the last one.
    """
    times = np.asarray(good_times, dtype=float)
    low = float(times.min(initial=HISTOGRAM_DEFAULT_MIN))
    high = float(times.max(initial=HISTOGRAM_DEFAULT_MAX))
    width = (high - low) / bin_count or HISTOGRAM_FALLBACK_WIDTH

    counts = np.zeros(bin_count, dtype=int)
    if times.size:
        indices = np.floor((times - low) / width).astype(int)
        indices = np.clip(indices, 0, bin_count - 1)
        counts = np.bincount(indices, minlength=bin_count)

    return tuple(
        HistogramBin(label=str(int(floor(low + index * width))), count=int(counts[index]))
        for index in range(bin_count)
    )


def stage_entries_frame(outcomes: Sequence[UnitOutcome]) -> pd.DataFrame:
    """One row per (unit, entered stage)."""
    records = [
        (outcome.unit_id, stage_id, detail.duration, detail.failed)
        for outcome in outcomes
        for stage_id, detail in outcome.stage_outcomes.items()
    ]
    frame = pd.DataFrame.from_records(records, columns=ENTRY_COLUMNS)
    return frame.astype({"unit_id": int, "duration": float, "failed": bool})


def stage_statistics(
    outcomes: Sequence[UnitOutcome], stages: Sequence[StageSpec]
) -> pd.DataFrame:
    """Per-stage input/pass/fail counts and mean duration, in pipeline order."""
    entries = stage_entries_frame(outcomes)
    grouped = entries.groupby("stage_id").agg(
        input_count=("unit_id", "size"),
        fail_count=("failed", "sum"),
        avg_duration=("duration", "mean"),
    )
    frame = grouped.reindex([stage.id for stage in stages])
    frame[["input_count", "fail_count"]] = frame[["input_count", "fail_count"]].fillna(0).astype(int)
    frame["avg_duration"] = frame["avg_duration"].fillna(0.0)
    frame["pass_count"] = frame["input_count"] - frame["fail_count"]
    return frame


def aggregate(
    outcomes: Sequence[UnitOutcome],
    stages: Sequence[StageSpec],
    total_units: int,
) -> SimulationResult:
    """
    Reduce unit outcomes to a :class:`SimulationResult`.

    ``total_units`` must be positive. Cycle-time statistics cover good units
    only; the yield trend is measured against ``total_units`` rather than the
    units that entered each stage.
    """
    scrapped_units = sum(1 for outcome in outcomes if outcome.is_scrap)
    good_units = total_units - scrapped_units
    overall_yield = good_units / total_units * 100.0

    good_times: List[float] = [
        outcome.total_cycle_time for outcome in outcomes if not outcome.is_scrap
    ]
    avg_cycle_time = float(np.mean(good_times)) if good_times else 0.0
    cycle_time_p95 = nearest_rank_percentile(good_times, P95_QUANTILE)

    frame = stage_statistics(outcomes, stages)
    stage_stats: List[StageStat] = []
    yield_trend: List[YieldTrendPoint] = []
    for stage in stages:
        row = frame.loc[stage.id]
        input_count = int(row["input_count"])
        pass_count = int(row["pass_count"])
        stage_stats.append(
            StageStat(
                stage_id=stage.id,
                stage_name=stage.name,
                input_count=input_count,
                pass_count=pass_count,
                fail_count=int(row["fail_count"]),
                yield_pct=pass_count / input_count * 100.0 if input_count else 0.0,
                avg_duration=float(row["avg_duration"]),
            )
        )
        yield_trend.append(
            YieldTrendPoint(
                stage_id=stage.id,
                stage_name=stage.name,
                cumulative_yield=pass_count / total_units * 100.0,
            )
        )

    return SimulationResult(
        total_units=total_units,
        good_units=good_units,
        scrapped_units=scrapped_units,
        overall_yield=overall_yield,
        avg_cycle_time=avg_cycle_time,
        cycle_time_p95=cycle_time_p95,
        stage_stats=tuple(stage_stats),
        cycle_time_distribution=cycle_time_histogram(good_times),
        yield_trend=tuple(yield_trend),
    )


__all__ = [
    "aggregate",
    "cycle_time_histogram",
    "nearest_rank_percentile",
    "stage_entries_frame",
    "stage_statistics",
]
