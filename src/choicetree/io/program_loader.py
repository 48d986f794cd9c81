from __future__ import annotations

"""Load actor programs from YAML."""

from typing import Any, Dict

import yaml
from pydantic import ValidationError

from choicetree.errors import LoaderError
from choicetree.programs.actors import DEFAULT_MAX_STEPS, ActorProgram
from choicetree.programs.file_spec import ActorProgramFileSpec


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_program(path: str, max_steps: int = DEFAULT_MAX_STEPS) -> ActorProgram:
    """Load an actor program from a YAML file.

    Expected format:
    main: main
    processes:
      main:
        - spawn: worker
        - send: {channel: jobs, value: 1}
        - recv: {channel: done, into: r}
        - emit: $r
      worker:
        - recv: {channel: jobs, into: x}
        - send: {channel: done, value: $x}
    """
    try:
        data = _read_yaml(path)
    except (OSError, yaml.YAMLError) as exc:
        raise LoaderError(path, "Failed to read actor program", cause=exc) from exc

    try:
        spec = ActorProgramFileSpec.model_validate(data)
    except ValidationError as exc:
        raise LoaderError(path, "Invalid actor program", cause=exc) from exc
    return ActorProgram(spec, max_steps=max_steps)


__all__ = ["load_program"]
