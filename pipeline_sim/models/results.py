"""Per-unit outcome records and aggregated result models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class StageOutcome:
    """What happened to one unit inside one stage it entered."""

    duration: float
    attempts_to_pass: int  # 0 when the unit was scrapped here
    failed: bool


@dataclass(frozen=True)
class UnitOutcome:
    """
    Trajectory of a single simulated unit.

    ``stage_outcomes`` covers exactly the stages the unit entered, keyed by stage
    id in pipeline order. ``total_cycle_time`` includes the partial time spent
    by scrapped units.
    """

    unit_id: int
    is_scrap: bool
    failed_at_stage_id: Optional[str]
    total_cycle_time: float
    stage_outcomes: Mapping[str, StageOutcome]


class StageStat(BaseModel):
    """Derived statistics for one pipeline stage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stage_id: str = Field(..., serialization_alias="stageId")
    stage_name: str = Field(..., serialization_alias="stageName")
    input_count: int = Field(..., ge=0, serialization_alias="inputCount")
    pass_count: int = Field(..., ge=0, serialization_alias="passCount")
    fail_count: int = Field(..., ge=0, serialization_alias="failCount")
    yield_pct: float = Field(..., serialization_alias="yield")
    avg_duration: float = Field(..., serialization_alias="avgDuration")


class HistogramBin(BaseModel):
    """One cycle-time histogram bucket, labelled by the floor of its lower edge."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str = Field(..., serialization_alias="bin")
    count: int = Field(..., ge=0)


class YieldTrendPoint(BaseModel):
    """Share of all starting units still alive after a stage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stage_id: str = Field(..., serialization_alias="stageId")
    stage_name: str = Field(..., serialization_alias="stageName")
    cumulative_yield: float = Field(..., serialization_alias="cumulativeYield")


class SimulationResult(BaseModel):
    """Whole-run aggregate produced by a Monte Carlo simulation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_units: int = Field(..., gt=0, serialization_alias="totalUnits")
    good_units: int = Field(..., ge=0, serialization_alias="goodUnits")
    scrapped_units: int = Field(..., ge=0, serialization_alias="scrappedUnits")
    overall_yield: float = Field(..., serialization_alias="overallYield")
    avg_cycle_time: float = Field(
        ..., serialization_alias="avgCycleTime", description="Mean over good units only"
    )
    cycle_time_p95: float = Field(
        ...,
        serialization_alias="cycleTimeP95",
        description="Nearest-rank 95th percentile over good units only",
    )
    stage_stats: Tuple[StageStat, ...] = Field(..., serialization_alias="stageStats")
    cycle_time_distribution: Tuple[HistogramBin, ...] = Field(
        ..., serialization_alias="cycleTimeDistribution"
    )
    yield_trend: Tuple[YieldTrendPoint, ...] = Field(..., serialization_alias="yieldTrend")

    @property
    def scrap_rate(self) -> float:
        return 100.0 - self.overall_yield

    def stage_stat(self, stage_id: str) -> StageStat:
        for stat in self.stage_stats:
            if stat.stage_id == stage_id:
                return stat
        raise KeyError(f"Stage {stage_id!r} not found")

    def to_dict(self) -> Dict[str, Any]:
        """Interchange form using the display layer's camelCase keys."""
        payload = self.model_dump(by_alias=True)
        for key in ("stageStats", "cycleTimeDistribution", "yieldTrend"):
            payload[key] = list(payload[key])
        return payload


def histogram_counts(result: SimulationResult) -> List[int]:
    return [bucket.count for bucket in result.cycle_time_distribution]


__all__ = [
    "HistogramBin",
    "SimulationResult",
    "StageOutcome",
    "StageStat",
    "UnitOutcome",
    "YieldTrendPoint",
    "histogram_counts",
]
