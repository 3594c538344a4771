"""Data models shared by the simulation core and its collaborators."""

from .pipeline import PipelineConfig, StageSpec
from .progress import SimulationProgressEvent
from .results import (
    HistogramBin,
    SimulationResult,
    StageOutcome,
    StageStat,
    UnitOutcome,
    YieldTrendPoint,
)

__all__ = [
    "HistogramBin",
    "PipelineConfig",
    "SimulationProgressEvent",
    "SimulationResult",
    "StageOutcome",
    "StageSpec",
    "StageStat",
    "UnitOutcome",
    "YieldTrendPoint",
]
