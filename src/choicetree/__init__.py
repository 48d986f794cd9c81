"""choicetree: run a nondeterministic program once along every path it can take."""

from choicetree.core import (
    ExecutionTree,
    ExplorationConfig,
    ExplorationReport,
    ExplorationSession,
    RunRecord,
    explore,
)
from choicetree.errors import (
    ConsistencyFault,
    ExhaustionLimit,
    ExplorationError,
    TargetFailure,
)

__version__ = "0.1.0"

__all__ = [
    "ConsistencyFault",
    "ExecutionTree",
    "ExhaustionLimit",
    "ExplorationConfig",
    "ExplorationError",
    "ExplorationReport",
    "ExplorationSession",
    "RunRecord",
    "TargetFailure",
    "explore",
]
