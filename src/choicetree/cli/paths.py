from __future__ import annotations

"""Utilities for resolving output paths."""

from pathlib import Path


def outputs_dir() -> Path:
    return Path.cwd() / "outputs"


def reports_dir() -> Path:
    return outputs_dir() / "reports"


def resolve_report_path(name: str) -> str:
    """Resolve a report filename under outputs/reports.

    The name is used directly without any prefixing.
    If name has no .yaml extension, it will be added.
    """
    reports_dir().mkdir(parents=True, exist_ok=True)
    base = Path(name).name
    if not base.endswith(".yaml"):
        base = f"{base}.yaml"
    return str(reports_dir() / base)
