"""Background execution helpers."""

from .simulation_runner import SimulationRunner

__all__ = ["SimulationRunner"]
