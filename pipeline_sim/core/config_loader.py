"""Read and write pipeline configurations as JSON or YAML files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from ..config import DEFAULT_PIPELINE
from ..models.pipeline import PipelineConfig
from .validator import InvalidConfiguration, build_pipeline_config

LOGGER = logging.getLogger(__name__)

JSON_SUFFIXES = {".json"}
YAML_SUFFIXES = {".yaml", ".yml"}


def default_pipeline_config() -> PipelineConfig:
    """The five-stage instrument build-and-test pipeline."""
    return build_pipeline_config(DEFAULT_PIPELINE)


def _suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in JSON_SUFFIXES | YAML_SUFFIXES:
        raise InvalidConfiguration(
            f"Unsupported configuration format {suffix or '<none>'!r} for {path}; "
            "use .json, .yaml or .yml"
        )
    return suffix


def parse_pipeline_text(text: str, *, fmt: str = "json") -> PipelineConfig:
    """Parse configuration text in ``json`` or ``yaml`` form."""
    try:
        payload: Any = yaml.safe_load(text) if fmt == "yaml" else json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidConfiguration(f"Unable to parse pipeline configuration: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidConfiguration("Pipeline configuration must be a mapping at the top level.")
    return build_pipeline_config(payload)


def load_pipeline_config(path: Union[str, Path]) -> PipelineConfig:
    """Load and validate a pipeline configuration file."""
    path = Path(path)
    suffix = _suffix(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InvalidConfiguration(f"File not found: {path}") from exc
    except OSError as exc:
        raise InvalidConfiguration(f"Unable to read {path}: {exc}") from exc
    try:
        config = parse_pipeline_text(text, fmt="yaml" if suffix in YAML_SUFFIXES else "json")
    except InvalidConfiguration as exc:
        raise InvalidConfiguration(f"{path}: {exc}", stage_id=exc.stage_id, field=exc.field) from exc
    LOGGER.info("Loaded %s stages from %s", len(config.stages), path)
    return config


def save_pipeline_config(config: PipelineConfig, path: Union[str, Path]) -> Path:
    """Write ``config`` to ``path``; the suffix selects JSON or YAML."""
    path = Path(path)
    suffix = _suffix(path)
    payload: Dict[str, Any] = config.to_payload()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        if suffix in YAML_SUFFIXES:
            yaml.safe_dump(payload, fh, sort_keys=False)
        else:
            json.dump(payload, fh, indent=2)
    LOGGER.info("Wrote pipeline configuration to %s", path)
    return path


__all__ = [
    "default_pipeline_config",
    "load_pipeline_config",
    "parse_pipeline_text",
    "save_pipeline_config",
]
