"""Input validation utilities and the error taxonomy of the simulator."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..config import MAX_SIMULATION_COUNT, MIN_SIMULATION_COUNT
from ..models.pipeline import PipelineConfig, StageSpec, duplicate_stage_ids

_FIELD_NAMES = {
    "meanDurationMinutes": "mean_duration_minutes",
    "failureProbability": "failure_probability",
    "reworkEnabled": "rework_enabled",
    "reworkTimePenaltyMinutes": "rework_time_penalty_minutes",
    "simulationCount": "simulation_count",
}


class PipelineSimError(Exception):
    """Base class for simulator errors."""


class InvalidConfiguration(PipelineSimError, ValueError):
    """Raised when a pipeline configuration cannot be simulated."""

    def __init__(
        self, message: str, *, stage_id: Optional[str] = None, field: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.stage_id = stage_id
        self.field = field


class SimulationCancelled(PipelineSimError):
    """Raised when a caller cancels a run between unit simulations."""

    def __init__(self, completed_units: int, total_units: int) -> None:
        super().__init__(
            f"Simulation cancelled after {completed_units}/{total_units} units"
        )
        self.completed_units = completed_units
        self.total_units = total_units


def _check_number(stage: StageSpec, field: str, value: float, *, upper: Optional[float] = None) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        raise InvalidConfiguration(
            f"Stage {stage.id!r}: {field} must be a finite number, got {value!r}",
            stage_id=stage.id,
            field=field,
        )
    if value < 0:
        raise InvalidConfiguration(
            f"Stage {stage.id!r}: {field} must be non-negative, got {value!r}",
            stage_id=stage.id,
            field=field,
        )
    if upper is not None and value > upper:
        raise InvalidConfiguration(
            f"Stage {stage.id!r}: {field} must be at most {upper}, got {value!r}",
            stage_id=stage.id,
            field=field,
        )


def validate_unique_stages(stages: Iterable[StageSpec]) -> None:
    """Ensure stage identifiers are unique."""
    duplicates = duplicate_stage_ids(stage.id for stage in stages)
    if duplicates:
        raise InvalidConfiguration(
            "Duplicate stage id values detected: " + ", ".join(duplicates),
            stage_id=duplicates[0],
            field="id",
        )


def validate_stages(stages: Sequence[StageSpec]) -> None:
    """Re-check stage constraints; models built with ``model_construct`` skip pydantic."""
    if not stages:
        raise InvalidConfiguration("Pipeline must contain at least one stage.", field="stages")
    for stage in stages:
        _check_number(stage, "mean_duration_minutes", stage.mean_duration_minutes)
        _check_number(stage, "failure_probability", stage.failure_probability, upper=1.0)
        _check_number(stage, "rework_time_penalty_minutes", stage.rework_time_penalty_minutes)
    validate_unique_stages(stages)


def validate_simulation_count(simulation_count: Any) -> None:
    if isinstance(simulation_count, bool) or not isinstance(simulation_count, int):
        raise InvalidConfiguration(
            f"simulation_count must be an integer, got {simulation_count!r}",
            field="simulation_count",
        )
    if simulation_count <= 0:
        raise InvalidConfiguration(
            f"simulation_count must be positive, got {simulation_count}",
            field="simulation_count",
        )


def validate_pipeline(stages: Sequence[StageSpec], simulation_count: Any) -> None:
    """Fail fast before any simulation work begins."""
    validate_simulation_count(simulation_count)
    validate_stages(stages)


def validate_simulation_bounds(
    simulation_count: int,
    *,
    minimum: int = MIN_SIMULATION_COUNT,
    maximum: int = MAX_SIMULATION_COUNT,
) -> None:
    """Responsiveness bounds applied by interactive collaborators, not by the core."""
    validate_simulation_count(simulation_count)
    if not minimum <= simulation_count <= maximum:
        raise InvalidConfiguration(
            f"simulation_count must be between {minimum} and {maximum}, got {simulation_count}",
            field="simulation_count",
        )


def _stage_id_at(payload: Mapping[str, Any], index: Any) -> Optional[str]:
    stages = payload.get("stages")
    if not isinstance(index, int) or not isinstance(stages, Sequence):
        return None
    if not 0 <= index < len(stages):
        return None
    entry = stages[index]
    if isinstance(entry, StageSpec):
        return entry.id
    if isinstance(entry, Mapping) and entry.get("id") is not None:
        return str(entry["id"])
    return None


def _translate_error(
    exc: PydanticValidationError,
    payload: Mapping[str, Any],
    *,
    prefix: Tuple[Any, ...] = (),
) -> InvalidConfiguration:
    """Map the first pydantic error onto the offending stage and field."""
    first = exc.errors()[0]
    loc = prefix + tuple(first.get("loc", ()))
    stage_id: Optional[str] = None
    field: Optional[str] = None
    if loc and loc[0] == "stages":
        if len(loc) > 1:
            stage_id = _stage_id_at(payload, loc[1])
        field = str(loc[2]) if len(loc) > 2 else "stages"
    elif loc:
        field = str(loc[0])
    elif "Duplicate stage id" in str(first.get("msg", "")):
        field = "id"
        stages = payload.get("stages") or ()
        duplicates = duplicate_stage_ids(
            candidate
            for candidate in (_stage_id_at(payload, index) for index in range(len(stages)))
            if candidate is not None
        )
        stage_id = duplicates[0] if duplicates else None
    if field is not None:
        field = _FIELD_NAMES.get(field, field)
    message = first.get("msg", str(exc))
    if stage_id:
        message = f"Stage {stage_id!r}: {field}: {message}"
    elif field:
        message = f"{field}: {message}"
    return InvalidConfiguration(message, stage_id=stage_id, field=field)


def build_pipeline_config(payload: Mapping[str, Any]) -> PipelineConfig:
    """Build a validated ``PipelineConfig`` from a plain mapping."""
    if not isinstance(payload, Mapping):
        raise InvalidConfiguration(
            f"Pipeline configuration must be a mapping, got {type(payload).__name__}"
        )
    try:
        config = PipelineConfig.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise _translate_error(exc, payload) from exc
    validate_pipeline(config.stages, config.simulation_count)
    return config


def build_stage(payload: Mapping[str, Any]) -> StageSpec:
    """Build a single validated stage, e.g. for the what-if editor."""
    try:
        return StageSpec.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise _translate_error(exc, {"stages": [payload]}, prefix=("stages", 0)) from exc


__all__ = [
    "InvalidConfiguration",
    "PipelineSimError",
    "SimulationCancelled",
    "build_pipeline_config",
    "build_stage",
    "validate_pipeline",
    "validate_simulation_bounds",
    "validate_simulation_count",
    "validate_stages",
    "validate_unique_stages",
]
