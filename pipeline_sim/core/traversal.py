"""Single-unit traversal of the ordered stage list."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Optional, Sequence

from ..config import DURATION_STDDEV_RATIO
from ..models.pipeline import StageSpec
from ..models.results import StageOutcome, UnitOutcome
from .variates import RandomSource, sample_duration


def run_stage(
    stage: StageSpec,
    rng: RandomSource,
    *,
    std_dev_ratio: float = DURATION_STDDEV_RATIO,
) -> StageOutcome:
    """
    Process one unit through one stage.

    Each attempt draws a duration, then rolls for failure; a roll at or above
    the failure probability passes. A failed attempt with attempts left adds the
    rework penalty before the retry. Rework grants exactly one retry.
    """
    attempts_to_pass = 0
    duration = 0.0
    failed = False
    max_attempts = stage.max_attempts
    std_dev = stage.mean_duration_minutes * std_dev_ratio

    for attempt in range(1, max_attempts + 1):
        duration += sample_duration(stage.mean_duration_minutes, std_dev, rng)
        if float(rng.random()) >= stage.failure_probability:
            attempts_to_pass = attempt
            break
        if attempt < max_attempts:
            duration += stage.rework_time_penalty_minutes
        else:
            failed = True

    return StageOutcome(duration=duration, attempts_to_pass=attempts_to_pass, failed=failed)


def simulate_unit(
    unit_id: int,
    stages: Sequence[StageSpec],
    rng: RandomSource,
    *,
    std_dev_ratio: float = DURATION_STDDEV_RATIO,
) -> UnitOutcome:
    """Walk one unit through the pipeline, stopping at the first terminal failure."""
    cycle_time = 0.0
    failed_at: Optional[str] = None
    outcomes: Dict[str, StageOutcome] = {}

    for stage in stages:
        outcome = run_stage(stage, rng, std_dev_ratio=std_dev_ratio)
        cycle_time += outcome.duration
        outcomes[stage.id] = outcome
        if outcome.failed:
            failed_at = stage.id
            break

    return UnitOutcome(
        unit_id=unit_id,
        is_scrap=failed_at is not None,
        failed_at_stage_id=failed_at,
        total_cycle_time=cycle_time,
        stage_outcomes=MappingProxyType(outcomes),
    )


__all__ = ["run_stage", "simulate_unit"]
