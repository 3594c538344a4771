"""Monte Carlo driver: independent traversals for N units."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from ..config import DURATION_STDDEV_RATIO
from ..models.pipeline import StageSpec
from ..models.results import UnitOutcome
from .traversal import simulate_unit
from .validator import SimulationCancelled, validate_pipeline
from .variates import RandomSource, make_random_source

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancelToken(Protocol):
    """``threading.Event`` compatible cancellation flag."""

    def is_set(self) -> bool:
        ...


def default_progress_interval(total_units: int) -> int:
    return max(1, total_units // 100)


def run_units(
    stages: Sequence[StageSpec],
    simulation_count: int,
    *,
    rng: Optional[RandomSource] = None,
    seed: Optional[int] = None,
    std_dev_ratio: float = DURATION_STDDEV_RATIO,
    progress_callback: Optional[ProgressCallback] = None,
    progress_interval: Optional[int] = None,
    cancel_event: Optional[CancelToken] = None,
) -> List[UnitOutcome]:
    """
    Simulate ``simulation_count`` units and return their outcomes by unit id.

    Parameters
    ----------
    stages:
        Pipeline stages in traversal order.
    simulation_count:
        Monte Carlo sample size, must be positive.
    rng:
        Random source shared by every unit of the run. Built from ``seed`` when
        omitted.
    progress_callback:
        Called with ``(completed, total)`` every ``progress_interval`` units and
        once at completion. Errors raised by the callback are logged and ignored.
    cancel_event:
        Checked before each unit; when set the run stops with
        :class:`SimulationCancelled` and no partial outcomes are returned.
    """
    validate_pipeline(stages, simulation_count)
    stages = tuple(stages)
    if rng is None:
        rng = make_random_source(seed)
    interval = progress_interval or default_progress_interval(simulation_count)

    def emit_progress(completed: int) -> None:
        LOGGER.debug("Simulated %s/%s units", completed, simulation_count)
        if progress_callback is None:
            return
        try:
            progress_callback(completed, simulation_count)
        except Exception as exc:
            LOGGER.warning("Progress callback failed at %s/%s: %s", completed, simulation_count, exc)

    LOGGER.debug("Simulating %s units over %s stages", simulation_count, len(stages))
    outcomes: List[UnitOutcome] = []
    for unit_id in range(simulation_count):
        if cancel_event is not None and cancel_event.is_set():
            LOGGER.info("Simulation cancelled after %s/%s units", unit_id, simulation_count)
            raise SimulationCancelled(unit_id, simulation_count)
        outcomes.append(simulate_unit(unit_id, stages, rng, std_dev_ratio=std_dev_ratio))
        completed = unit_id + 1
        if completed % interval == 0 and completed < simulation_count:
            emit_progress(completed)

    emit_progress(simulation_count)
    return outcomes


__all__ = ["CancelToken", "ProgressCallback", "default_progress_interval", "run_units"]
