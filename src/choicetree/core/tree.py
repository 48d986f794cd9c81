"""
Execution tree data model.

The tree records every choice point discovered while re-running a
nondeterministic program, and which subtrees have been fully explored.

Node states:
    UNEXPLORED  reached, but no choice has been observed here yet
    BRANCH      a choice among ``n`` options was observed; owns ``n`` children
    DONE        every path through this node has been executed

All nodes live in a single arena (``ExecutionTree.nodes``). Children links
and the driver's cursor are plain indices into that arena, so nothing holds a
reference into the middle of the tree. Pruning releases the slots of collapsed
children to a free list, and later allocations reuse them.

Example:
    tree = ExecutionTree()
    cursor, index = tree.observe_choice(tree.root, 2)   # -> (1, 0)
    tree.mark_done(cursor)
    tree.prune()
    cursor, index = tree.observe_choice(tree.root, 2)   # -> (2, 1)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, PrivateAttr

from choicetree.errors import ConsistencyFault


class NodeState(str, Enum):
    """Exploration state of a choice node."""

    UNEXPLORED = "unexplored"
    BRANCH = "branch"
    DONE = "done"


class ChoiceNode(BaseModel):
    """A single choice point. ``children`` is only populated while BRANCH."""

    state: NodeState = NodeState.UNEXPLORED
    children: List[int] = Field(default_factory=list)

    @property
    def is_done(self) -> bool:
        return self.state is NodeState.DONE

    @property
    def is_branch(self) -> bool:
        return self.state is NodeState.BRANCH

    @property
    def options(self) -> int:
        """Number of options recorded at this point (0 unless BRANCH)."""
        return len(self.children)


class ExecutionTree(BaseModel):
    """Arena-backed execution tree for one exploration session."""

    nodes: List[ChoiceNode] = Field(default_factory=lambda: [ChoiceNode()])
    root_id: int = 0

    # Released arena slots, reused by _allocate
    _free: List[int] = PrivateAttr(default_factory=list)

    # =========================================================================
    # Node Access
    # =========================================================================

    @property
    def root(self) -> int:
        """Arena index of the root node."""
        return self.root_id

    def node(self, index: int) -> ChoiceNode:
        """Get the node stored at an arena index."""
        return self.nodes[index]

    def is_done(self) -> bool:
        """True once pruning has collapsed the root to DONE."""
        return self.nodes[self.root].is_done

    # =========================================================================
    # Choice Observation
    # =========================================================================

    def observe_choice(self, cursor: int, n: int) -> Tuple[int, int]:
        """
        Record a choice among ``n`` options at ``cursor``.

        Args:
            cursor: Arena index of the node the running program is at
            n: Number of options offered (``n >= 1``)

        Returns:
            Tuple of (new cursor, chosen index)

        Raises:
            ValueError: If ``n`` is not a positive integer
            ConsistencyFault: If the choice contradicts the recorded structure
        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValueError(f"Number of options must be a positive integer, got {n!r}")

        node = self.nodes[cursor]
        if node.is_done:
            raise ConsistencyFault(cursor, "Choice requested inside an explored subtree")

        # A single option carries no information
        if n == 1:
            return cursor, 0

        if node.state is NodeState.UNEXPLORED:
            children = [self._allocate() for _ in range(n)]
            node.children = children
            node.state = NodeState.BRANCH
            return children[0], 0

        if node.options != n:
            raise ConsistencyFault(
                cursor,
                f"Choice offered {n} option(s) where {node.options} were recorded",
            )

        for index, child in enumerate(node.children):
            if not self.nodes[child].is_done:
                return child, index

        raise ConsistencyFault(cursor, "Every option at this choice point is already explored")

    def mark_done(self, cursor: int) -> None:
        """
        Force the node a run finished on to DONE.

        Raises:
            ConsistencyFault: If an earlier run made a further choice at this node
        """
        node = self.nodes[cursor]
        if node.is_branch:
            raise ConsistencyFault(cursor, "Run ended where an earlier run made a further choice")
        node.state = NodeState.DONE

    def abandon(self, cursor: int) -> None:
        """Mark ``cursor`` DONE whatever its state, releasing its whole subtree."""
        node = self.nodes[cursor]
        stack = list(node.children)
        while stack:
            index = stack.pop()
            stack.extend(self.nodes[index].children)
            self.nodes[index].children = []
            self._free.append(index)
        node.children = []
        node.state = NodeState.DONE

    # =========================================================================
    # Pruning
    # =========================================================================

    def prune(self, index: Optional[int] = None) -> None:
        """
        Collapse every BRANCH whose children are all DONE, bottom-up.

        Children of a collapsed node are released to the free list. Calling
        this twice in a row leaves the tree unchanged the second time.
        """
        start = self.root if index is None else index
        stack: List[Tuple[int, bool]] = [(start, False)]

        while stack:
            current, expanded = stack.pop()
            node = self.nodes[current]
            if not node.is_branch:
                continue
            if not expanded:
                stack.append((current, True))
                stack.extend((child, False) for child in node.children)
                continue
            if all(self.nodes[child].is_done for child in node.children):
                self._free.extend(node.children)
                node.children = []
                node.state = NodeState.DONE

    def _allocate(self) -> int:
        if self._free:
            index = self._free.pop()
            self.nodes[index] = ChoiceNode()
            return index
        self.nodes.append(ChoiceNode())
        return len(self.nodes) - 1

    # =========================================================================
    # Statistics
    # =========================================================================

    def _walk(self) -> List[Tuple[int, int]]:
        """Reachable (index, depth) pairs in pre-order, lowest option first."""
        visited: List[Tuple[int, int]] = []
        stack = [(self.root, 0)]
        while stack:
            index, depth = stack.pop()
            visited.append((index, depth))
            children = self.nodes[index].children
            stack.extend((child, depth + 1) for child in reversed(children))
        return visited

    def get_depth(self) -> int:
        """Deepest choice level currently recorded (0 for a lone root)."""
        return max(depth for _, depth in self._walk())

    def get_statistics(self) -> Dict[str, Any]:
        """Get comprehensive statistics about the tree."""
        walked = self._walk()
        states = [self.nodes[index].state for index, _ in walked]
        return {
            "live_nodes": len(walked),
            "arena_size": len(self.nodes),
            "free_slots": len(self._free),
            "branch_points": sum(1 for s in states if s is NodeState.BRANCH),
            "done_nodes": sum(1 for s in states if s is NodeState.DONE),
            "unexplored_nodes": sum(1 for s in states if s is NodeState.UNEXPLORED),
            "depth": max(depth for _, depth in walked),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Reachable nodes keyed by arena index, for YAML serialization."""
        return {
            "root": self.root_id,
            "nodes": {
                index: {
                    "state": self.nodes[index].state.value,
                    "children": list(self.nodes[index].children),
                }
                for index, _ in self._walk()
            },
        }


__all__ = ["ChoiceNode", "ExecutionTree", "NodeState"]
