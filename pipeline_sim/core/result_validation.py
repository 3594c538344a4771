"""Sanity checks on aggregated simulation results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from ..models.results import SimulationResult, histogram_counts

_TOLERANCE = 1e-9


@dataclass
class ValidationResult:
    """Basic container for validation outcomes."""

    status: str
    failed_checks: Sequence[str]
    warnings: Sequence[str]

    @property
    def passed(self) -> bool:
        return self.status == "PASS"

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status,
            "failed_checks": list(self.failed_checks),
            "warnings": list(self.warnings),
        }


def validate_result(result: SimulationResult) -> ValidationResult:
    """Check the accounting invariants that every well-formed result satisfies."""
    failed: list[str] = []
    warnings: list[str] = []

    if result.good_units + result.scrapped_units != result.total_units:
        failed.append("unit_count_mismatch")
    if not 0.0 <= result.overall_yield <= 100.0:
        failed.append("overall_yield_out_of_range")

    input_counts = np.array([stat.input_count for stat in result.stage_stats], dtype=int)
    if any(stat.input_count != stat.pass_count + stat.fail_count for stat in result.stage_stats):
        failed.append("stage_count_mismatch")
    if input_counts.size and input_counts[0] != result.total_units:
        failed.append("first_stage_input_mismatch")
    if input_counts.size > 1 and np.any(np.diff(input_counts) > 0):
        failed.append("stage_inputs_increase")

    trend = np.array([point.cumulative_yield for point in result.yield_trend], dtype=float)
    if trend.size > 1 and np.any(np.diff(trend) > _TOLERANCE):
        failed.append("yield_trend_increases")
    if trend.size and trend[-1] > result.overall_yield + _TOLERANCE:
        failed.append("final_trend_exceeds_yield")

    if sum(histogram_counts(result)) != result.good_units:
        failed.append("histogram_count_mismatch")

    if result.good_units == 0:
        warnings.append("no_good_units")
    elif result.overall_yield < 50.0:
        warnings.append("low_overall_yield")

    status = "PASS" if not failed else "FAIL"
    return ValidationResult(status=status, failed_checks=failed, warnings=warnings)


__all__ = ["ValidationResult", "validate_result"]
