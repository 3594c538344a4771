"""Reporting helpers for simulation results."""

from .report_generator import ReportGenerator
from .tables import (
    histogram_frame,
    longest_stage,
    lowest_yield_stage,
    stage_stats_frame,
    unit_outcomes_frame,
    yield_trend_frame,
)

__all__ = [
    "ReportGenerator",
    "histogram_frame",
    "longest_stage",
    "lowest_yield_stage",
    "stage_stats_frame",
    "unit_outcomes_frame",
    "yield_trend_frame",
]
