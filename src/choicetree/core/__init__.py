"""
Exhaustive path exploration engine.

Components:
- ExecutionTree: arena of choice nodes tracking explored subtrees
- ExplorationSession: re-runs a program along each unexplored path
- explore: run a session to completion
- ExplorationConfig: run limit, failure policy, logging verbosity

Example:
    from choicetree.core import explore

    def program(choose):
        return [choose(2), choose(3)]

    report = explore(program)
    assert report.run_count == 6
"""

from choicetree.core.config import ExplorationConfig
from choicetree.core.driver import (
    Choice,
    ChoicePort,
    ExplorationReport,
    ExplorationSession,
    FailureRecord,
    Program,
    RunRecord,
    explore,
)
from choicetree.core.tree import ChoiceNode, ExecutionTree, NodeState

__all__ = [
    "Choice",
    "ChoiceNode",
    "ChoicePort",
    "ExecutionTree",
    "ExplorationConfig",
    "ExplorationReport",
    "ExplorationSession",
    "FailureRecord",
    "NodeState",
    "Program",
    "RunRecord",
    "explore",
]
