from __future__ import annotations

"""Persist exploration reports."""

from pathlib import Path

import yaml

from choicetree.core.driver import ExplorationReport


def save_report_to_yaml(report: ExplorationReport, file_path: str) -> None:
    """
    Save an exploration report to a YAML file.

    Args:
        report: Report returned by ``explore`` or ``ExplorationSession.report``
        file_path: Output file path
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    data = report.to_dict()

    with open(file_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)


__all__ = ["save_report_to_yaml"]
