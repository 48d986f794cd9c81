"""
choicetree CLI: validate actor programs and explore every interleaving.

- validate: load a program file and report its processes
- explore: run the program once along every path and summarize outcomes
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from choicetree.cli.formatters import (
    build_outcomes_table,
    build_runs_table,
    build_statistics_table,
)
from choicetree.cli.load_helpers import load_or_exit
from choicetree.cli.paths import resolve_report_path
from choicetree.core import ExplorationConfig, ExplorationReport, explore
from choicetree.errors import ConsistencyFault, ExhaustionLimit, TargetFailure
from choicetree.io import load_config, load_program, save_report_to_yaml
from choicetree.utils.logging import configure_logging

app = typer.Typer(help="choicetree CLI: explore every execution path of an actor program.")
console = Console()


def _build_config(
    config_path: Optional[str],
    overrides: Dict[str, Any],
    *,
    verbose_load: bool,
) -> ExplorationConfig:
    base = ExplorationConfig()
    if config_path:
        base = load_or_exit(load_config, config_path, console=console, verbose_errors=verbose_load)

    data = base.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ExplorationConfig.model_validate(data)
    except ValidationError as exc:
        for err in exc.errors():
            loc = ".".join(str(entry) for entry in err.get("loc", []))
            console.print(f"[red]Bad option[/red] {loc}: {err.get('msg')}")
        raise typer.Exit(code=2)


def _render_report(report: ExplorationReport, *, show_runs: bool) -> None:
    console.print(build_outcomes_table(report))
    if show_runs:
        console.print(build_runs_table(report))
    if report.failures:
        console.print(f"\n[red bold]Failed runs ({len(report.failures)}):[/red bold]")
        for failure in report.failures:
            suffix = " [dim](skipped)[/dim]" if failure.skipped else ""
            console.print(f"  - run {failure.number} after {failure.path}: {escape(failure.error)}{suffix}")


@app.command()
def validate(
    program: str = typer.Argument(..., help="Actor program YAML file"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Validate an actor program file."""
    loaded = load_or_exit(load_program, program, console=console, verbose_errors=verbose)

    op_count = sum(len(ops) for ops in loaded.spec.processes.values())
    console.print(f"[green]OK[/green] Loaded {len(loaded.spec.processes)} process(es), {op_count} operation(s)")
    console.print(f"Main process: {loaded.spec.main}")


@app.command("explore")
def explore_command(
    program: str = typer.Argument(..., help="Actor program YAML file"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Exploration config YAML file"),
    max_runs: Optional[int] = typer.Option(None, "--max-runs", help="Stop after this many runs"),
    on_failure: Optional[str] = typer.Option(None, "--on-failure", help="'raise' or 'skip' failed runs"),
    show_runs: bool = typer.Option(False, "--show-runs", help="List every run and its choices"),
    save: Optional[str] = typer.Option(None, "--save", help="Save report as outputs/reports/<name>.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each run"),
    verbose_load: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Run an actor program once along every interleaving and summarize the outcomes."""
    configure_logging(verbose=verbose)

    config = _build_config(
        config_path,
        {"max_runs": max_runs, "on_failure": on_failure, "verbose": verbose or None},
        verbose_load=verbose_load,
    )
    loaded = load_or_exit(load_program, program, console=console, verbose_errors=verbose_load)

    try:
        report = explore(loaded, config)
    except ConsistencyFault as fault:
        console.print(f"[red]Program is not deterministic:[/red] {escape(str(fault))}")
        raise typer.Exit(code=1)
    except TargetFailure as failure:
        console.print(f"[red]{escape(str(failure))}[/red]: {escape(repr(failure.__cause__))}")
        raise typer.Exit(code=1)
    except ExhaustionLimit as limit:
        console.print(f"[yellow]{limit}[/yellow]")
        if limit.report is not None:
            _render_report(limit.report, show_runs=show_runs)
        raise typer.Exit(code=3)

    console.print("\n[bold]Exploration Complete[/bold]")
    console.print(f"Program: {program}")
    console.print(f"Runs: {report.run_count}")
    _render_report(report, show_runs=show_runs)

    deadlocks = sum(count for outcome, count in report.outcome_counts() if getattr(outcome, "deadlocked", False))
    if deadlocks:
        console.print(f"[red]Deadlocked runs: {deadlocks}[/red]")

    if verbose:
        console.print(build_statistics_table(report))

    if save:
        report_path = resolve_report_path(save)
        save_report_to_yaml(report, report_path)
        console.print(f"Saved: {report_path}")


__all__ = ["app"]
