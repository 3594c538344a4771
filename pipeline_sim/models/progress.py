"""Data models for simulation progress streaming."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SimulationProgressEvent:
    """A single progress update emitted while units are being simulated."""

    completed_units: int
    total_units: int
    message: str
    timestamp: float = field(default_factory=time.time)

    @property
    def fraction(self) -> float:
        if self.total_units <= 0:
            return 0.0
        return self.completed_units / self.total_units


__all__ = ["SimulationProgressEvent"]
