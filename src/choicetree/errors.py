"""Exception hierarchy for exploration sessions, loaders and the actor interpreter."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Iterable, List, Optional

from pydantic import ValidationError

if TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from choicetree.core.driver import Choice


class ExplorationError(RuntimeError):
    """Base class for every error raised by the exploration engine."""


class ConsistencyFault(ExplorationError):
    """
    The program disagreed with the branch structure recorded at a tree position.

    Raised when a choice is requested with a different option count than
    before, when a choice is requested inside an already explored subtree, or
    when a run ends on a node where an earlier run made a further choice.
    The session that raised it refuses to run again.
    """

    def __init__(self, node: int, message: str):
        self.node = node
        self.message = message
        super().__init__(f"{message} (node {node})")


class TargetFailure(ExplorationError):
    """The explored program raised during a run; the original error is ``__cause__``."""

    def __init__(self, run_number: int, choices: Optional[List["Choice"]] = None):
        self.run_number = run_number
        self.choices = list(choices or [])
        path = [choice.index for choice in self.choices]
        super().__init__(f"Program failed during run {run_number} after choices {path}")


class ExhaustionLimit(ExplorationError):
    """The configured run limit was reached before the tree was exhausted."""

    def __init__(self, runs: int, max_runs: int):
        self.runs = runs
        self.max_runs = max_runs
        # Partial ExplorationReport, attached by ExplorationSession.run
        self.report = None
        super().__init__(f"Exploration incomplete: reached limit of {max_runs} run(s) after {runs} run(s)")


class ActorRuntimeError(RuntimeError):
    """Raised by the actor interpreter for unknown variables or processes."""


class LoaderError(RuntimeError):
    """Wraps loader failures with file path context."""

    def __init__(self, file_path: str, message: str, *, cause: Exception | None = None):
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        path = self._relative_path(self.file_path)
        base = f"{self.message} ({path})"
        if isinstance(self.cause, ValidationError):
            detail = self._format_validation_errors(self.cause.errors())
            return f"{base}: {detail}"
        if self.cause:
            return f"{base}: {self.cause}"
        return base

    @staticmethod
    def _relative_path(path: str) -> str:
        try:
            return os.path.relpath(path)
        except ValueError:  # pragma: no cover - different drive on Windows
            return path

    @staticmethod
    def _format_validation_errors(errors: Iterable[dict]) -> str:
        error_list = list(errors)
        snippets = []
        for err in error_list:
            loc = ".".join(str(entry) for entry in err.get("loc", [])) or "<root>"
            msg = err.get("msg") or err.get("type") or "validation error"
            snippets.append(f"{loc}: {msg}")
            if len(snippets) >= 3:
                break
        remaining = len(error_list) - len(snippets)
        if remaining > 0:
            snippets.append(f"... ({remaining} more)")
        return "; ".join(snippets)

    def __str__(self) -> str:
        return self._build_message()


__all__ = [
    "ActorRuntimeError",
    "ConsistencyFault",
    "ExhaustionLimit",
    "ExplorationError",
    "LoaderError",
    "TargetFailure",
]
