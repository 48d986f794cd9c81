"""
Shared fixtures for exploration engine tests.

A shape is a nested list describing the true execution tree of a fake
program: ``None`` is a leaf, a list of ``k`` shapes is a choice among ``k``
options. ``ScriptedProgram`` walks a shape using the choice port.
"""

from typing import List, Optional

import pytest


class ScriptedProgram:
    """Fake nondeterministic program whose choice structure is a nested list."""

    def __init__(self, shape):
        self.shape = shape
        self.calls = 0
        self.traces: List[List[tuple]] = []

    def __call__(self, choose):
        self.calls += 1
        trace = []
        node = self.shape
        while node is not None:
            index = choose(len(node))
            trace.append((len(node), index))
            node = node[index]
        self.traces.append(trace)
        return tuple(index for _, index in trace)


def leaf_paths(shape, prefix: Optional[List[int]] = None) -> List[List[int]]:
    """Every root-to-leaf index sequence of a shape, lowest option first."""
    prefix = prefix or []
    if shape is None:
        return [prefix]
    paths = []
    for index, child in enumerate(shape):
        paths.extend(leaf_paths(child, prefix + [index]))
    return paths


@pytest.fixture
def uneven_shape():
    """Seven leaves with single-option and three-way choices mixed in."""
    return [
        [None, None, None],
        [None],
        [[None, None], None],
    ]


@pytest.fixture
def scripted(uneven_shape) -> ScriptedProgram:
    return ScriptedProgram(uneven_shape)


@pytest.fixture
def make_program():
    """Factory building a ScriptedProgram from a shape."""
    return ScriptedProgram


@pytest.fixture
def paths_of():
    return leaf_paths
