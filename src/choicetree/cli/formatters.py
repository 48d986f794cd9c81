"""Formatting helpers for CLI presentation."""

from __future__ import annotations

from typing import Any

from rich.table import Table

from choicetree.core.driver import ExplorationReport


def format_outcome(outcome: Any) -> str:
    describe = getattr(outcome, "describe", None)
    if callable(describe):
        return describe()
    return repr(outcome)


def build_outcomes_table(report: ExplorationReport) -> Table:
    """Distinct outcomes with how many runs produced each."""
    table = Table(title="Outcomes")
    table.add_column("#", justify="right")
    table.add_column("Outcome")
    table.add_column("Runs", justify="right")

    for idx, (outcome, count) in enumerate(report.outcome_counts(), start=1):
        table.add_row(str(idx), format_outcome(outcome), str(count))
    return table


def build_runs_table(report: ExplorationReport) -> Table:
    table = Table(title="Runs")
    table.add_column("Run", justify="right")
    table.add_column("Choices")
    table.add_column("Outcome")

    for run in report.runs:
        choices = " ".join(f"{c.index}/{c.options}" for c in run.choices) or "-"
        table.add_row(str(run.number), choices, format_outcome(run.outcome))
    return table


def build_statistics_table(report: ExplorationReport) -> Table:
    table = Table(title="Execution Tree")
    table.add_column("Statistic")
    table.add_column("Value", justify="right")

    for key, value in report.statistics.items():
        table.add_row(key.replace("_", " "), str(value))
    return table


__all__ = [
    "build_outcomes_table",
    "build_runs_table",
    "build_statistics_table",
    "format_outcome",
]
