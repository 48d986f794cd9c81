"""
Exploration driver.

Re-runs a nondeterministic program until every path through its execution
tree has been executed exactly once. The program is any callable that accepts
a choice port, ``choose(n) -> int``, and calls it whenever it needs to pick
one of ``n`` options:

    def program(choose):
        if choose(2) == 1:
            return ("right", choose(2))
        return ("left",)

    report = explore(program)
    [run.path for run in report.runs]   # [[0], [1, 0], [1, 1]]

Options are explored lowest index first, so two sessions over the same
program produce the same runs in the same order.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from choicetree.core.config import ExplorationConfig
from choicetree.core.tree import ExecutionTree
from choicetree.errors import ConsistencyFault, ExhaustionLimit, ExplorationError, TargetFailure
from choicetree.utils.logging import log_calls

logger = logging.getLogger(__name__)

ChoicePort = Callable[[int], int]
Program = Callable[[ChoicePort], Any]


class Choice(BaseModel):
    """One call to the choice port: ``index`` was picked out of ``options``."""

    options: int
    index: int


class RunRecord(BaseModel):
    """A run that returned normally."""

    number: int
    choices: List[Choice] = Field(default_factory=list)
    outcome: Any = None

    @property
    def path(self) -> List[int]:
        """Chosen indices, including single-option calls."""
        return [choice.index for choice in self.choices]

    def describe(self) -> str:
        steps = " ".join(f"{c.index}/{c.options}" for c in self.choices) or "<no choices>"
        return f"[run {self.number}] {steps}"


class FailureRecord(BaseModel):
    """A run in which the program raised."""

    number: int
    choices: List[Choice] = Field(default_factory=list)
    error: str
    skipped: bool = False

    @property
    def path(self) -> List[int]:
        return [choice.index for choice in self.choices]


class ExplorationReport(BaseModel):
    """Everything an exploration session produced so far."""

    runs: List[RunRecord] = Field(default_factory=list)
    failures: List[FailureRecord] = Field(default_factory=list)
    completed: bool = False
    statistics: Dict[str, Any] = Field(default_factory=dict)

    @property
    def run_count(self) -> int:
        return len(self.runs)

    def paths(self) -> List[List[int]]:
        return [run.path for run in self.runs]

    def outcome_counts(self) -> List[Tuple[Any, int]]:
        """
        Distinct outcomes with the number of runs producing each, in first-seen order.

        Outcomes are grouped by the repr of their plain-data form, so unhashable
        values can be counted and ``1``, ``1.0`` and ``True`` stay apart.
        """
        firsts: Dict[str, Any] = {}
        counts: Dict[str, int] = {}
        for run in self.runs:
            key = repr(_plain(run.outcome))
            firsts.setdefault(key, run.outcome)
            counts[key] = counts.get(key, 0) + 1
        return [(firsts[key], count) for key, count in counts.items()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to plain data for YAML serialization."""
        return {
            "completed": self.completed,
            "run_count": self.run_count,
            "statistics": dict(self.statistics),
            "runs": [
                {
                    "number": run.number,
                    "choices": [[c.options, c.index] for c in run.choices],
                    "outcome": _plain(run.outcome),
                }
                for run in self.runs
            ],
            "failures": [failure.model_dump() for failure in self.failures],
        }


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _plain(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return repr(value)


class ExplorationSession:
    """
    Drives one program through its whole execution tree.

    Each session owns its tree; the cursor for a run lives only inside that
    run's choice port, so sessions never share state. Iterating a session
    yields one ``RunRecord`` per completed run; stop iterating to cancel.

    If the program raises, ``step`` raises ``TargetFailure`` and leaves the
    failed path unexplored. Calling ``step`` again re-runs that same path.
    ``skip_failed_run`` marks it explored instead, at the cost of never
    visiting any choice the failed run did not reach.
    """

    def __init__(self, program: Program, config: Optional[ExplorationConfig] = None):
        self.program = program
        self.config = config or ExplorationConfig()
        self.tree = ExecutionTree()
        self.runs: List[RunRecord] = []
        self.failures: List[FailureRecord] = []
        self._attempts = 0
        self._fault: Optional[ConsistencyFault] = None
        self._failed_cursor: Optional[int] = None

    @property
    def done(self) -> bool:
        self.tree.prune()
        return self.tree.is_done()

    @property
    def attempts(self) -> int:
        """Runs started so far, failed ones included."""
        return self._attempts

    def __iter__(self) -> Iterator[RunRecord]:
        while True:
            record = self.step()
            if record is None:
                return
            yield record

    def step(self) -> Optional[RunRecord]:
        """
        Prune, then run the program once along the next unexplored path.

        Returns:
            The completed run, or None when every path has been explored

        Raises:
            ConsistencyFault: The program broke determinism (now or earlier)
            TargetFailure: The program raised during this run
            ExhaustionLimit: ``max_runs`` runs were already started
        """
        if self._fault is not None:
            raise self._fault

        self.tree.prune()
        if self.tree.is_done():
            return None

        max_runs = self.config.max_runs
        if max_runs is not None and self._attempts >= max_runs:
            raise ExhaustionLimit(self._attempts, max_runs)

        return self._run_once()

    def run(self) -> ExplorationReport:
        """Step until the tree is exhausted, applying the ``on_failure`` policy."""
        while True:
            try:
                record = self.step()
            except TargetFailure:
                if self.config.on_failure != "skip":
                    raise
                self.skip_failed_run()
                continue
            except ExhaustionLimit as limit:
                limit.report = self.report()
                raise
            if record is None:
                break
        report = self.report()
        logger.info(
            "Exploration complete: %d run(s), %d failure(s)",
            report.run_count,
            len(report.failures),
        )
        return report

    def skip_failed_run(self) -> None:
        """Mark the node the last failed run stopped at, and its subtree, as explored."""
        if self._failed_cursor is None:
            raise ExplorationError("No failed run to skip")
        self.tree.abandon(self._failed_cursor)
        self._failed_cursor = None
        self.failures[-1].skipped = True
        logger.warning("Skipped failed run %d", self.failures[-1].number)

    def report(self) -> ExplorationReport:
        self.tree.prune()
        return ExplorationReport(
            runs=list(self.runs),
            failures=[failure.model_copy() for failure in self.failures],
            completed=self.tree.is_done(),
            statistics=self.tree.get_statistics(),
        )

    # =========================================================================
    # Single Run
    # =========================================================================

    def _run_once(self) -> RunRecord:
        self._attempts += 1
        number = self._attempts
        self._failed_cursor = None

        cursor = self.tree.root
        choices: List[Choice] = []
        active = True

        def choose(n: int) -> int:
            nonlocal cursor
            if not active:
                raise ExplorationError(f"Choice port of run {number} used after the run ended")
            if self._fault is not None:
                raise self._fault
            try:
                cursor, index = self.tree.observe_choice(cursor, n)
            except ConsistencyFault as fault:
                self._fault = fault
                raise
            choices.append(Choice(options=n, index=index))
            return index

        try:
            outcome = self.program(choose)
        except Exception as exc:
            if self._fault is not None:
                if exc is self._fault:
                    raise
                raise self._fault from exc
            self._failed_cursor = cursor
            self.failures.append(FailureRecord(number=number, choices=choices, error=repr(exc)))
            logger.error("Run %d failed after choices %s: %r", number, [c.index for c in choices], exc)
            raise TargetFailure(number, choices) from exc
        finally:
            active = False

        # The program may have swallowed the fault raised by its choice port
        if self._fault is not None:
            raise self._fault

        try:
            self.tree.mark_done(cursor)
        except ConsistencyFault as fault:
            self._fault = fault
            raise

        record = RunRecord(
            number=number,
            choices=choices,
            outcome=outcome if self.config.record_outcomes else None,
        )
        self.runs.append(record)

        if self.config.verbose:
            logger.info("%s -> %r", record.describe(), record.outcome)
        else:
            logger.debug("%s -> %r", record.describe(), record.outcome)
        return record


@log_calls()
def explore(program: Program, config: Optional[ExplorationConfig] = None) -> ExplorationReport:
    """
    Run ``program`` once along every path of its execution tree.

    Args:
        program: Callable taking the choice port; must be deterministic given
            the answers it has received from the port
        config: Session options (defaults to ``ExplorationConfig()``)

    Returns:
        ExplorationReport with one RunRecord per leaf, in exploration order

    Raises:
        ConsistencyFault: The program is not deterministic given its choices
        TargetFailure: The program raised and ``on_failure`` is ``raise``
        ExhaustionLimit: ``max_runs`` was reached first; the partial report is
            available as its ``report`` attribute
    """
    return ExplorationSession(program, config).run()


__all__ = [
    "Choice",
    "ChoicePort",
    "ExplorationReport",
    "ExplorationSession",
    "FailureRecord",
    "Program",
    "RunRecord",
    "explore",
]
