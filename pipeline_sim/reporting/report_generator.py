"""Report generation utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.result_validation import validate_result
from ..models.pipeline import PipelineConfig
from ..models.results import SimulationResult, UnitOutcome
from .tables import (
    histogram_frame,
    stage_stats_frame,
    unit_outcomes_frame,
    yield_trend_frame,
)

LOGGER = logging.getLogger(__name__)


def _json_default(obj: object) -> object:
    """JSON serializer that handles numpy/path objects gracefully."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class ReportGenerator:
    """Persist simulation outputs to disk as JSON and CSV tables."""

    def __init__(
        self,
        output_dir: str | Path = "output",
        *,
        timestamped: bool = False,
        run_label: Optional[str] = None,
    ) -> None:
        base_dir = Path(output_dir)
        base_dir.mkdir(parents=True, exist_ok=True)
        if timestamped:
            run_label = run_label or datetime.now(timezone.utc).strftime("run_%Y%m%d_%H%M%S")
            self.output_dir = base_dir / run_label
        else:
            self.output_dir = base_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.base_dir = base_dir
        self.run_label = self.output_dir.name

    # ------------------------------------------------------------------ helpers
    def _write_json(self, payload: Dict[str, object], filename: str) -> Path:
        path = self.output_dir / filename
        with path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, default=_json_default)
        return path

    def _write_table(self, table: pd.DataFrame, filename: str) -> Path:
        path = self.output_dir / filename
        table.to_csv(path, index=False)
        return path

    # ------------------------------------------------------------------- exports
    def export_summary(self, result: SimulationResult, filename: str = "summary.json") -> Path:
        payload = result.to_dict()
        payload["validation"] = validate_result(result).to_dict()
        return self._write_json(payload, filename)

    def export_tables(self, result: SimulationResult) -> Dict[str, Path]:
        return {
            "stage_stats": self._write_table(stage_stats_frame(result), "stage_stats.csv"),
            "cycle_time_histogram": self._write_table(
                histogram_frame(result), "cycle_time_histogram.csv"
            ),
            "yield_trend": self._write_table(yield_trend_frame(result), "yield_trend.csv"),
        }

    def export_pipeline_config(
        self, config: PipelineConfig, filename: str = "pipeline_config.json"
    ) -> Path:
        return self._write_json(config.to_payload(), filename)

    def export_unit_outcomes(
        self, outcomes: Sequence[UnitOutcome], filename: str = "unit_outcomes.csv"
    ) -> Optional[Path]:
        if not outcomes:
            return None
        return self._write_table(unit_outcomes_frame(outcomes), filename)

    def export_all(
        self,
        result: SimulationResult,
        config: PipelineConfig,
        outcomes: Optional[Sequence[UnitOutcome]] = None,
    ) -> Dict[str, Path]:
        """Write every artefact for one run and return them keyed by name."""
        output: Dict[str, Path] = {"summary": self.export_summary(result)}
        output.update(self.export_tables(result))
        output["pipeline_config"] = self.export_pipeline_config(config)
        if outcomes:
            unit_path = self.export_unit_outcomes(outcomes)
            if unit_path is not None:
                output["unit_outcomes"] = unit_path
        LOGGER.info("Exported %s artefacts to %s", len(output), self.output_dir)
        return output


__all__ = ["ReportGenerator"]
