"""Pipeline configuration data models."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import REWORK_MAX_ATTEMPTS


class StageSpec(BaseModel):
    """A single processing step of the production pipeline."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Unique stage identifier")
    name: str = Field(..., description="Display name")
    mean_duration_minutes: float = Field(
        ...,
        ge=0.0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("mean_duration_minutes", "meanDurationMinutes"),
        description="Mean processing time per attempt in minutes.",
    )
    failure_probability: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("failure_probability", "failureProbability"),
        description="Probability that a single attempt fails (decimal form).",
    )
    rework_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("rework_enabled", "reworkEnabled"),
        description="Grant one retry after a failed attempt.",
    )
    rework_time_penalty_minutes: float = Field(
        default=0.0,
        ge=0.0,
        allow_inf_nan=False,
        validation_alias=AliasChoices(
            "rework_time_penalty_minutes", "reworkTimePenaltyMinutes"
        ),
        description="Extra minutes charged before the retry attempt.",
    )

    @field_validator("id", "name", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        """Identifiers and names are trimmed, non-empty strings."""
        if value is None:
            raise ValueError("value cannot be null")
        value = str(value).strip()
        if not value:
            raise ValueError("value cannot be empty")
        return value

    @field_validator("rework_time_penalty_minutes", mode="before")
    @classmethod
    def _default_penalty(cls, value: Optional[Any]) -> Any:
        """An omitted penalty means no rework overhead."""
        return 0.0 if value is None else value

    @property
    def max_attempts(self) -> int:
        return REWORK_MAX_ATTEMPTS if self.rework_enabled else 1

    def with_changes(self, **changes: Any) -> "StageSpec":
        """Return a re-validated copy with the supplied field changes."""
        payload = self.model_dump()
        payload.update(changes)
        return StageSpec(**payload)


def duplicate_stage_ids(stage_ids: Iterable[str]) -> List[str]:
    """Sorted identifiers that occur more than once."""
    seen = set()
    duplicates = set()
    for stage_id in stage_ids:
        if stage_id in seen:
            duplicates.add(stage_id)
        seen.add(stage_id)
    return sorted(duplicates)


class PipelineConfig(BaseModel):
    """Ordered stages plus the Monte Carlo sample size."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stages: Tuple[StageSpec, ...] = Field(
        ..., min_length=1, description="Stages in traversal order"
    )
    simulation_count: int = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("simulation_count", "simulationCount"),
        description="Number of units to simulate.",
    )

    @model_validator(mode="after")
    def _unique_stage_ids(self) -> "PipelineConfig":
        duplicates = duplicate_stage_ids(self.stage_ids)
        if duplicates:
            raise ValueError("Duplicate stage id values detected: " + ", ".join(duplicates))
        return self

    @property
    def stage_ids(self) -> Tuple[str, ...]:
        return tuple(stage.id for stage in self.stages)

    def stage(self, stage_id: str) -> StageSpec:
        """Fetch a stage by identifier."""
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        raise KeyError(f"Stage {stage_id!r} not found")

    def to_payload(self) -> Dict[str, Any]:
        """Plain dictionary suitable for JSON/YAML persistence."""
        return {
            "simulation_count": int(self.simulation_count),
            "stages": [stage.model_dump() for stage in self.stages],
        }


__all__ = ["PipelineConfig", "StageSpec", "duplicate_stage_ids"]
