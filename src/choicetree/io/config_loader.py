from __future__ import annotations

"""Load exploration settings from YAML."""

from typing import Any, Dict

import yaml
from pydantic import ValidationError

from choicetree.core.config import ExplorationConfig
from choicetree.errors import LoaderError


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str) -> ExplorationConfig:
    """Load an ExplorationConfig from a YAML file.

    Expected format (the ``exploration`` wrapper is optional):
    exploration:
      max_runs: 500
      on_failure: skip
      record_outcomes: true
      verbose: false
    """
    try:
        data = _read_yaml(path)
    except (OSError, yaml.YAMLError) as exc:
        raise LoaderError(path, "Failed to read exploration config", cause=exc) from exc

    if not isinstance(data, dict):
        raise LoaderError(path, "Exploration config must be a mapping")
    if "exploration" in data:
        data = data["exploration"] or {}

    try:
        return ExplorationConfig.model_validate(data)
    except ValidationError as exc:
        raise LoaderError(path, "Invalid exploration config", cause=exc) from exc


__all__ = ["load_config"]
