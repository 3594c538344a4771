"""Monte Carlo yield and cycle-time simulation for multi-stage production pipelines."""

from .core.validator import InvalidConfiguration, PipelineSimError, SimulationCancelled
from .engine import PipelineSimulator, simulate, simulate_with_outcomes
from .models import PipelineConfig, SimulationResult, StageSpec

__version__ = "0.1.0"

__all__ = [
    "InvalidConfiguration",
    "PipelineConfig",
    "PipelineSimError",
    "PipelineSimulator",
    "SimulationCancelled",
    "SimulationResult",
    "StageSpec",
    "simulate",
    "simulate_with_outcomes",
]
