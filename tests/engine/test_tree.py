"""
Tests for the execution tree.

Tests cover:
- observe_choice on unexplored, branch and done nodes
- ConsistencyFault cases leave the tree untouched
- Pruning and idempotence
- Arena slot reuse
- Statistics and serialization
"""

import pytest

from choicetree.core.tree import ChoiceNode, ExecutionTree, NodeState
from choicetree.errors import ConsistencyFault


class TestObserveChoice:
    """Tests for ExecutionTree.observe_choice."""

    def test_new_tree_has_unexplored_root(self):
        """A fresh tree is a single unexplored root at index 0."""
        tree = ExecutionTree()

        assert tree.root == 0
        assert len(tree.nodes) == 1
        assert tree.node(0).state is NodeState.UNEXPLORED
        assert not tree.is_done()

    def test_first_visit_creates_children(self):
        """An unexplored node becomes a branch and the lowest option is chosen."""
        tree = ExecutionTree()

        cursor, index = tree.observe_choice(tree.root, 3)

        root = tree.node(tree.root)
        assert root.is_branch
        assert root.options == 3
        assert index == 0
        assert cursor == root.children[0]
        assert all(tree.node(c).state is NodeState.UNEXPLORED for c in root.children)

    def test_single_option_does_not_grow_tree(self):
        """n == 1 always resolves to 0 and leaves the cursor in place."""
        tree = ExecutionTree()

        assert tree.observe_choice(tree.root, 1) == (tree.root, 0)
        assert len(tree.nodes) == 1
        assert tree.node(tree.root).state is NodeState.UNEXPLORED

    def test_revisit_skips_done_children(self):
        """A revisited branch selects the first child that is not done."""
        tree = ExecutionTree()
        first, _ = tree.observe_choice(tree.root, 3)
        tree.mark_done(first)
        tree.prune()

        cursor, index = tree.observe_choice(tree.root, 3)

        assert index == 1
        assert cursor == tree.node(tree.root).children[1]

    @pytest.mark.parametrize("bad", [0, -2, 2.5, True, "2", None])
    def test_invalid_option_count(self, bad):
        """Option counts must be positive integers."""
        tree = ExecutionTree()

        with pytest.raises(ValueError):
            tree.observe_choice(tree.root, bad)

        assert tree.node(tree.root).state is NodeState.UNEXPLORED


class TestConsistencyFaults:
    """The tree refuses choices that contradict what it recorded."""

    def test_mismatched_option_count(self):
        """A different n at a recorded branch is a fault and changes nothing."""
        tree = ExecutionTree()
        first, _ = tree.observe_choice(tree.root, 2)
        tree.mark_done(first)
        before = tree.model_dump()

        with pytest.raises(ConsistencyFault) as excinfo:
            tree.observe_choice(tree.root, 3)

        assert excinfo.value.node == tree.root
        assert "3 option(s)" in str(excinfo.value)
        assert tree.model_dump() == before

    def test_choice_at_done_node(self):
        """Requesting a choice at a done node is a fault."""
        tree = ExecutionTree()
        tree.mark_done(tree.root)

        with pytest.raises(ConsistencyFault):
            tree.observe_choice(tree.root, 2)

    def test_choice_at_done_node_with_single_option(self):
        """The done check comes before the single-option shortcut."""
        tree = ExecutionTree()
        tree.mark_done(tree.root)

        with pytest.raises(ConsistencyFault):
            tree.observe_choice(tree.root, 1)

    def test_all_children_done_without_pruning(self):
        """A branch whose children are all done, but not yet pruned, is a fault."""
        tree = ExecutionTree()
        tree.observe_choice(tree.root, 2)
        for child in tree.node(tree.root).children:
            tree.mark_done(child)

        with pytest.raises(ConsistencyFault):
            tree.observe_choice(tree.root, 2)

        tree.prune()
        assert tree.is_done()

    def test_mark_done_on_branch(self):
        """Ending a run where an earlier run chose further is a fault."""
        tree = ExecutionTree()
        tree.observe_choice(tree.root, 2)

        with pytest.raises(ConsistencyFault):
            tree.mark_done(tree.root)

        assert tree.node(tree.root).is_branch


class TestPrune:
    """Tests for ExecutionTree.prune."""

    def test_prune_collapses_fully_done_subtrees(self):
        """Branches collapse once every child is done, bottom-up."""
        tree = ExecutionTree()
        middle, _ = tree.observe_choice(tree.root, 2)
        leaf, _ = tree.observe_choice(middle, 2)
        tree.mark_done(leaf)
        tree.prune()
        assert tree.node(middle).is_branch

        middle_again, _ = tree.observe_choice(tree.root, 2)
        assert middle_again == middle
        leaf, index = tree.observe_choice(middle, 2)
        assert index == 1
        tree.mark_done(leaf)
        tree.prune()

        assert tree.node(middle).is_done
        assert tree.node(middle).children == []
        assert tree.node(tree.root).is_branch

    def test_prune_is_idempotent(self):
        """Pruning twice in a row gives the same tree as pruning once."""
        tree = ExecutionTree()
        middle, _ = tree.observe_choice(tree.root, 3)
        leaf, _ = tree.observe_choice(middle, 2)
        tree.mark_done(leaf)

        tree.prune()
        once = tree.model_dump()
        once_stats = tree.get_statistics()
        tree.prune()

        assert tree.model_dump() == once
        assert tree.get_statistics() == once_stats

    def test_prune_leaves_unexplored_and_done_alone(self):
        tree = ExecutionTree()
        tree.prune()
        assert tree.node(tree.root).state is NodeState.UNEXPLORED

        tree.mark_done(tree.root)
        tree.prune()
        assert tree.is_done()

    def test_prune_deep_chain(self):
        """Pruning works on trees far deeper than the recursion limit."""
        tree = ExecutionTree()
        cursor = tree.root
        for _ in range(5000):
            cursor, _ = tree.observe_choice(cursor, 2)
        tree.mark_done(cursor)

        assert tree.get_depth() == 5000
        tree.prune()
        assert tree.node(tree.root).is_branch


class TestArena:
    """Released slots are reused."""

    def test_collapsed_children_are_reused(self):
        """Allocations after a collapse reuse the freed slots."""
        tree = ExecutionTree()
        left, _ = tree.observe_choice(tree.root, 2)
        for _ in range(2):
            cursor, _ = tree.observe_choice(tree.root, 2)
            assert cursor == left
            leaf, _ = tree.observe_choice(left, 2)
            tree.mark_done(leaf)
            tree.prune()

        assert tree.node(left).is_done
        assert tree.get_statistics()["free_slots"] == 2
        arena_size = len(tree.nodes)

        right, index = tree.observe_choice(tree.root, 2)
        assert index == 1
        tree.observe_choice(right, 2)

        assert len(tree.nodes) == arena_size
        assert sorted(tree.node(right).children) == [3, 4]
        assert tree.get_statistics()["free_slots"] == 0

    def test_abandon_releases_subtree(self):
        """abandon marks a node done and frees every descendant."""
        tree = ExecutionTree()
        middle, _ = tree.observe_choice(tree.root, 2)
        tree.observe_choice(middle, 3)

        tree.abandon(middle)

        assert tree.node(middle).is_done
        assert tree.node(middle).children == []
        assert tree.get_statistics()["free_slots"] == 3


class TestStatistics:
    """Tests for statistics and serialization."""

    def test_statistics_counts(self):
        tree = ExecutionTree()
        middle, _ = tree.observe_choice(tree.root, 2)
        leaf, _ = tree.observe_choice(middle, 2)
        tree.mark_done(leaf)

        stats = tree.get_statistics()

        assert stats["live_nodes"] == 5
        assert stats["arena_size"] == 5
        assert stats["branch_points"] == 2
        assert stats["done_nodes"] == 1
        assert stats["unexplored_nodes"] == 2
        assert stats["depth"] == 2

    def test_to_dict_lists_reachable_nodes(self):
        tree = ExecutionTree()
        tree.observe_choice(tree.root, 2)

        data = tree.to_dict()

        assert data["root"] == 0
        assert data["nodes"][0] == {"state": "branch", "children": [1, 2]}
        assert data["nodes"][1]["state"] == "unexplored"

    def test_choice_node_defaults(self):
        node = ChoiceNode()

        assert node.state is NodeState.UNEXPLORED
        assert node.options == 0
        assert not node.is_done
