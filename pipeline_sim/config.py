"""Project-wide defaults for the production pipeline simulator."""

from __future__ import annotations

from typing import Any, Dict

# Model constants
DURATION_STDDEV_RATIO = 0.1
REWORK_MAX_ATTEMPTS = 2
HISTOGRAM_BIN_COUNT = 20
HISTOGRAM_DEFAULT_MIN = 0.0
HISTOGRAM_DEFAULT_MAX = 100.0
HISTOGRAM_FALLBACK_WIDTH = 10.0
P95_QUANTILE = 0.95

# Collaborator-side bounds on the Monte Carlo sample size (the core accepts any positive count)
MIN_SIMULATION_COUNT = 100
MAX_SIMULATION_COUNT = 50000

# Environment variables read by the command-line interface
SEED_ENV_VAR = "PIPELINE_SIM_SEED"
LOG_LEVEL_ENV_VAR = "PIPELINE_SIM_LOG_LEVEL"

NEW_STAGE_DEFAULTS: Dict[str, Any] = {
    "name": "New Stage",
    "mean_duration_minutes": 30.0,
    "failure_probability": 0.05,
    "rework_enabled": False,
    "rework_time_penalty_minutes": 0.0,
}

DEFAULT_PIPELINE: Dict[str, Any] = {
    "simulation_count": 2000,
    "stages": [
        {
            "id": "s1",
            "name": "Mechanical Assembly",
            "mean_duration_minutes": 45.0,
            "failure_probability": 0.02,
            "rework_enabled": True,
            "rework_time_penalty_minutes": 30.0,
        },
        {
            "id": "s2",
            "name": "Electronics Assembly",
            "mean_duration_minutes": 60.0,
            "failure_probability": 0.05,
            "rework_enabled": True,
            "rework_time_penalty_minutes": 45.0,
        },
        {
            "id": "s3",
            "name": "Calibration",
            "mean_duration_minutes": 30.0,
            "failure_probability": 0.10,
            # calibration failures scrap the unit outright
            "rework_enabled": False,
            "rework_time_penalty_minutes": 0.0,
        },
        {
            "id": "s4",
            "name": "Functional Test",
            "mean_duration_minutes": 20.0,
            "failure_probability": 0.03,
            "rework_enabled": True,
            "rework_time_penalty_minutes": 20.0,
        },
        {
            "id": "s5",
            "name": "Final QC",
            "mean_duration_minutes": 15.0,
            "failure_probability": 0.01,
            "rework_enabled": True,
            "rework_time_penalty_minutes": 15.0,
        },
    ],
}


__all__ = [
    "DEFAULT_PIPELINE",
    "DURATION_STDDEV_RATIO",
    "HISTOGRAM_BIN_COUNT",
    "HISTOGRAM_DEFAULT_MAX",
    "HISTOGRAM_DEFAULT_MIN",
    "HISTOGRAM_FALLBACK_WIDTH",
    "MAX_SIMULATION_COUNT",
    "MIN_SIMULATION_COUNT",
    "NEW_STAGE_DEFAULTS",
    "P95_QUANTILE",
    "LOG_LEVEL_ENV_VAR",
    "REWORK_MAX_ATTEMPTS",
    "SEED_ENV_VAR",
]
