"""Random variate generation for stage durations."""

from __future__ import annotations

import sys
from math import cos, log, pi, sqrt
from typing import Optional, Protocol

import numpy as np


class RandomSource(Protocol):
    """Anything exposing ``random()`` returning a float in [0, 1)."""

    def random(self) -> float:
        ...


def make_random_source(seed: Optional[int] = None) -> np.random.Generator:
    """Return the default random source; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def gaussian(mean: float, std_dev: float, rng: RandomSource) -> float:
    """
    Sample ``N(mean, std_dev**2)`` with the Box-Muller transform.

    ``u`` is taken as ``1 - draw`` so that a source returning exactly 0 never
    reaches the logarithm. A malformed source returning 1 is floored to the
    smallest positive float for the same reason.
    """
    u = 1.0 - float(rng.random())
    v = float(rng.random())
    if u <= 0.0:
        u = sys.float_info.min
    z = sqrt(-2.0 * log(u)) * cos(2.0 * pi * v)
    return mean + std_dev * z


def sample_duration(mean: float, std_dev: float, rng: RandomSource) -> float:
    """Draw a processing duration; durations are floored at zero."""
    return max(0.0, gaussian(mean, std_dev, rng))


__all__ = ["RandomSource", "gaussian", "make_random_source", "sample_duration"]
