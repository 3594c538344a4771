"""Typer-based command line interface for pipeline what-if runs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ..config import LOG_LEVEL_ENV_VAR, MAX_SIMULATION_COUNT, MIN_SIMULATION_COUNT, SEED_ENV_VAR
from ..core.config_loader import default_pipeline_config, load_pipeline_config, save_pipeline_config
from ..core.validator import InvalidConfiguration
from ..engine import PipelineSimulator
from ..models.pipeline import PipelineConfig
from ..models.results import SimulationResult
from ..reporting import ReportGenerator
from ..reporting.tables import longest_stage, lowest_yield_stage
from ..utils.numbers import as_probability, parse_bool

app = typer.Typer(help="Monte Carlo yield and cycle-time simulator for multi-stage production pipelines")
console = Console()

FIELD_PARSERS: Dict[str, Callable[[str], Any]] = {
    "name": str,
    "mean_duration_minutes": float,
    "failure_probability": as_probability,
    "rework_enabled": parse_bool,
    "rework_time_penalty_minutes": float,
}
FIELD_ALIASES = {
    "mean": "mean_duration_minutes",
    "duration": "mean_duration_minutes",
    "failure": "failure_probability",
    "p": "failure_probability",
    "rework": "rework_enabled",
    "penalty": "rework_time_penalty_minutes",
}
HISTOGRAM_BAR_WIDTH = 40


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: Exception) -> None:
    console.print(f"[red]Invalid configuration:[/red] {exc}")
    raise typer.Exit(code=2)


def _parse_override(text: str) -> Tuple[str, str, Any]:
    """Split ``STAGE.FIELD=VALUE`` into its parts and coerce the value."""
    target, sep, raw = text.partition("=")
    stage_id, dot, field = target.strip().partition(".")
    if not sep or not dot or not stage_id or not field:
        raise typer.BadParameter(f"Expected STAGE.FIELD=VALUE, got {text!r}", param_hint="--set")
    field = FIELD_ALIASES.get(field, field)
    parser = FIELD_PARSERS.get(field)
    if parser is None:
        raise typer.BadParameter(
            f"Unknown stage field {field!r}; choose from: {', '.join(FIELD_PARSERS)}",
            param_hint="--set",
        )
    try:
        value = parser(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"{text!r}: {exc}", param_hint="--set") from exc
    return stage_id, field, value


def _load_config(config_path: Optional[Path]) -> PipelineConfig:
    if config_path is None:
        return default_pipeline_config()
    return load_pipeline_config(config_path)


def _stages_table(config: PipelineConfig) -> Table:
    table = Table(title=f"Pipeline ({len(config.stages)} stages, {config.simulation_count} units)")
    table.add_column("Id")
    table.add_column("Stage")
    table.add_column("Mean (min)", justify="right")
    table.add_column("Failure %", justify="right")
    table.add_column("Rework", justify="center")
    table.add_column("Penalty (min)", justify="right")
    for stage in config.stages:
        table.add_row(
            stage.id,
            stage.name,
            f"{stage.mean_duration_minutes:.1f}",
            f"{stage.failure_probability * 100:.2f}%",
            "yes" if stage.rework_enabled else "no",
            f"{stage.rework_time_penalty_minutes:.1f}" if stage.rework_enabled else "-",
        )
    return table


def _print_result(result: SimulationResult) -> None:
    console.print("\n[bold]Simulation Summary[/bold]")
    console.print(
        f"Overall Yield: {result.overall_yield:.2f}% "
        f"({result.good_units:,} of {result.total_units:,} units)\n"
        f"Scrap Rate: {result.scrap_rate:.2f}% ({result.scrapped_units:,} units lost)\n"
        f"Avg Cycle Time: {result.avg_cycle_time:.1f} min (good units)\n"
        f"P95 Cycle Time: {result.cycle_time_p95:.1f} min"
    )

    stage_table = Table(title="Stage Performance")
    for column in ["Stage", "Input", "Pass", "Fail", "Yield", "Avg Duration"]:
        stage_table.add_column(column, justify="left" if column == "Stage" else "right")
    for stat in result.stage_stats:
        stage_table.add_row(
            stat.stage_name,
            f"{stat.input_count:,}",
            f"{stat.pass_count:,}",
            f"{stat.fail_count:,}",
            f"{stat.yield_pct:.2f}%",
            f"{stat.avg_duration:.1f} min",
        )
    console.print()
    console.print(stage_table)

    trend_table = Table(title="Cumulative Yield")
    trend_table.add_column("Stage")
    trend_table.add_column("Still Alive", justify="right")
    for point in result.yield_trend:
        trend_table.add_row(point.stage_name, f"{point.cumulative_yield:.2f}%")
    console.print()
    console.print(trend_table)

    console.print("\n[bold]Cycle Time Distribution (min)[/bold]")
    peak = max((bucket.count for bucket in result.cycle_time_distribution), default=0)
    for bucket in result.cycle_time_distribution:
        length = round(bucket.count / peak * HISTOGRAM_BAR_WIDTH) if peak else 0
        console.print(f"{bucket.label:>6} | {'#' * length} {bucket.count}")

    weakest = lowest_yield_stage(result)
    slowest = longest_stage(result)
    console.print(
        f"\n[yellow]Lowest yield: {weakest.stage_name} ({weakest.yield_pct:.2f}%). "
        f"Longest stage: {slowest.stage_name} ({slowest.avg_duration:.1f} min).[/yellow]"
    )


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Pipeline configuration (.json/.yaml); defaults to the built-in pipeline"
    ),
    units: Optional[int] = typer.Option(
        None,
        "--units",
        "-n",
        min=MIN_SIMULATION_COUNT,
        max=MAX_SIMULATION_COUNT,
        help="Number of units to simulate",
    ),
    seed: Optional[int] = typer.Option(None, envvar=SEED_ENV_VAR, help="Random seed for a reproducible run"),
    overrides: Optional[List[str]] = typer.Option(
        None,
        "--set",
        help="What-if override STAGE.FIELD=VALUE, e.g. s3.failure_probability=5 (repeatable)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    output_dir: Optional[Path] = typer.Option(None, help="Directory for report exports"),
    trace: bool = typer.Option(False, help="Also export one row per simulated unit"),
    log_level: str = typer.Option("WARNING", envvar=LOG_LEVEL_ENV_VAR, help="Logging level"),
) -> None:
    """Run a Monte Carlo simulation of the pipeline."""
    _configure_logging(log_level)
    parsed = [_parse_override(text) for text in overrides or []]
    try:
        simulator = PipelineSimulator(_load_config(config_path), enforce_bounds=True)
        for stage_id, field, value in parsed:
            try:
                simulator.update_stage(stage_id, **{field: value})
            except KeyError as exc:
                raise typer.BadParameter(f"Unknown stage id {stage_id!r}", param_hint="--set") from exc
        if units is not None:
            simulator.set_simulation_count(units)
        result = simulator.run(seed=seed)
    except InvalidConfiguration as exc:
        _fail(exc)
        return

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        if parsed:
            console.print(_stages_table(simulator.config))
        _print_result(result)

    if output_dir is not None:
        reporter = ReportGenerator(output_dir)
        exports = reporter.export_all(
            result, simulator.config, simulator.last_outcomes if trace else None
        )
        if not as_json:
            console.print("\n[bold green]Exports:[/bold green]")
            for name, path in exports.items():
                console.print(f"  - {name}: {path}")


@app.command("show-config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Pipeline configuration file"),
) -> None:
    """Print the pipeline stages as a table."""
    try:
        config = _load_config(config_path)
    except InvalidConfiguration as exc:
        _fail(exc)
        return
    console.print(_stages_table(config))


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(..., help="Destination file (.json, .yaml or .yml)"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
) -> None:
    """Write the built-in pipeline to a file as a starting point."""
    if path.exists() and not force:
        raise typer.BadParameter(f"{path} already exists; pass --force to overwrite")
    try:
        written = save_pipeline_config(default_pipeline_config(), path)
    except InvalidConfiguration as exc:
        _fail(exc)
        return
    console.print(f"Pipeline configuration written to: {written}")


def main() -> None:
    """Entry point for CLI execution."""
    app()


if __name__ == "__main__":
    main()
