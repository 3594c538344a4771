"""High-level orchestration for the production pipeline simulator."""

from __future__ import annotations

import logging
from itertools import count
from typing import Any, List, Optional, Sequence

from .config import DURATION_STDDEV_RATIO, NEW_STAGE_DEFAULTS
from .core.aggregation import aggregate
from .core.config_loader import default_pipeline_config
from .core.monte_carlo import CancelToken, ProgressCallback, run_units
from .core.result_validation import validate_result
from .core.validator import (
    build_pipeline_config,
    build_stage,
    validate_simulation_bounds,
    validate_simulation_count,
)
from .core.variates import RandomSource
from .models.pipeline import PipelineConfig, StageSpec
from .models.results import SimulationResult, UnitOutcome

LOGGER = logging.getLogger(__name__)


def simulate_with_outcomes(
    config: PipelineConfig,
    *,
    rng: Optional[RandomSource] = None,
    seed: Optional[int] = None,
    std_dev_ratio: float = DURATION_STDDEV_RATIO,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[CancelToken] = None,
) -> tuple[SimulationResult, List[UnitOutcome]]:
    """Run the simulation and also return the per-unit trajectories."""
    LOGGER.info(
        "Starting simulation of %s units across %s stages",
        config.simulation_count,
        len(config.stages),
    )
    outcomes = run_units(
        config.stages,
        config.simulation_count,
        rng=rng,
        seed=seed,
        std_dev_ratio=std_dev_ratio,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
    )
    result = aggregate(outcomes, config.stages, config.simulation_count)

    check = validate_result(result)
    if not check.passed:
        LOGGER.warning("Result failed invariant checks: %s", ", ".join(check.failed_checks))
    LOGGER.info(
        "Simulation complete: %s/%s good units (%.2f%% yield), P95 cycle time %.1f min",
        result.good_units,
        result.total_units,
        result.overall_yield,
        result.cycle_time_p95,
    )
    return result, outcomes


def simulate(
    config: PipelineConfig,
    *,
    rng: Optional[RandomSource] = None,
    seed: Optional[int] = None,
    std_dev_ratio: float = DURATION_STDDEV_RATIO,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[CancelToken] = None,
) -> SimulationResult:
    """
    Pure entry point: pipeline configuration in, aggregated result out.

    The only state involved is the random stream, taken from ``rng`` or built
    from ``seed``. Identical seeds give identical results.
    """
    result, _ = simulate_with_outcomes(
        config,
        rng=rng,
        seed=seed,
        std_dev_ratio=std_dev_ratio,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
    )
    return result


class PipelineSimulator:
    """
    Mutable working copy of a pipeline for what-if exploration.

    Every edit produces new validated immutable models; :meth:`run` hands the
    current snapshot to :func:`simulate`.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        *,
        enforce_bounds: bool = False,
    ) -> None:
        self.enforce_bounds = enforce_bounds
        self._config = config or default_pipeline_config()
        self._stage_counter = count(len(self._config.stages) + 1)
        self.last_result: Optional[SimulationResult] = None
        self.last_outcomes: List[UnitOutcome] = []

    # ------------------------------------------------------------------ state
    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def stages(self) -> Sequence[StageSpec]:
        return self._config.stages

    def _replace(self, *, stages: Optional[Sequence[StageSpec]] = None, simulation_count: Optional[int] = None) -> None:
        self._config = build_pipeline_config(
            {
                "stages": tuple(self._config.stages if stages is None else stages),
                "simulation_count": self._config.simulation_count
                if simulation_count is None
                else simulation_count,
            }
        )

    def _index(self, stage_id: str) -> int:
        for index, stage in enumerate(self._config.stages):
            if stage.id == stage_id:
                return index
        raise KeyError(f"Stage {stage_id!r} not found")

    # ------------------------------------------------------------------ edits
    def update_stage(self, stage_id: str, **changes: Any) -> StageSpec:
        """Apply field changes to one stage, e.g. ``failure_probability=0.05``."""
        index = self._index(stage_id)
        payload = self._config.stages[index].model_dump()
        payload.update(changes)
        updated = build_stage(payload)
        stages = list(self._config.stages)
        stages[index] = updated
        self._replace(stages=stages)
        return updated

    def _next_stage_id(self) -> str:
        existing = set(self._config.stage_ids)
        while True:
            candidate = f"s{next(self._stage_counter)}"
            if candidate not in existing:
                return candidate

    def add_stage(self, stage: Optional[StageSpec] = None, **fields: Any) -> StageSpec:
        """Append a stage; without arguments a default "New Stage" is added."""
        if stage is None:
            payload = dict(NEW_STAGE_DEFAULTS)
            payload.update(fields)
            if "id" not in payload:
                payload["id"] = self._next_stage_id()
            stage = build_stage(payload)
        self._replace(stages=list(self._config.stages) + [stage])
        return stage

    def remove_stage(self, stage_id: str) -> None:
        index = self._index(stage_id)
        stages = list(self._config.stages)
        del stages[index]
        self._replace(stages=stages)

    def set_simulation_count(self, simulation_count: int) -> None:
        if self.enforce_bounds:
            validate_simulation_bounds(simulation_count)
        else:
            validate_simulation_count(simulation_count)
        self._replace(simulation_count=simulation_count)

    def reset(self) -> None:
        """Return to the default pipeline and forget previous results."""
        self._config = default_pipeline_config()
        self._stage_counter = count(len(self._config.stages) + 1)
        self.last_result = None
        self.last_outcomes = []

    # --------------------------------------------------------------- execution
    def run(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[RandomSource] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[CancelToken] = None,
    ) -> SimulationResult:
        if self.enforce_bounds:
            validate_simulation_bounds(self._config.simulation_count)
        result, outcomes = simulate_with_outcomes(
            self._config,
            rng=rng,
            seed=seed,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )
        self.last_result = result
        self.last_outcomes = outcomes
        return result


__all__ = ["PipelineSimulator", "simulate", "simulate_with_outcomes"]
