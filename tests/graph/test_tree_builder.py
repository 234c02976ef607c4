"""Unit tests for the bounded tree builder."""

import pytest

from taskgraph.config import TraversalConfig
from taskgraph.graph.tree_builder import build_tree, resolve_max_depth
from taskgraph.models import DependencyNode, Task


def expander(edges):
    """Return an expand callable over a plain adjacency dict."""

    def expand(task_id):
        return [Task(id=child, title=child.upper()) for child in edges.get(task_id, [])]

    return expand


def shape(node):
    """Reduce a node to nested (id, children) tuples."""
    return (node.id, [shape(child) for child in node.dependencies])


def build(edges, root="a", max_depth=10):
    return build_tree(
        Task(id=root, title=root.upper()),
        expand=expander(edges),
        make_node=DependencyNode.from_task,
        max_depth=max_depth,
    )


class TestResolveMaxDepth:
    """Test depth defaulting, validation and clamping."""

    def test_default(self):
        assert resolve_max_depth(None, TraversalConfig()) == 10

    def test_explicit(self):
        assert resolve_max_depth(3, TraversalConfig()) == 3
        assert resolve_max_depth(0, TraversalConfig()) == 0

    def test_negative(self):
        with pytest.raises(ValueError, match="max_depth must be >= 0"):
            resolve_max_depth(-1, TraversalConfig())

    def test_clamped(self):
        traversal = TraversalConfig(default_max_depth=5, max_depth_limit=8)
        assert resolve_max_depth(1000, traversal) == 8
        assert resolve_max_depth(8, traversal) == 8


class TestBuildTree:
    """Test tree shape over chains, diamonds and cycles."""

    def test_single_node(self):
        assert shape(build({})) == ("a", [])

    def test_children_keep_expand_order(self):
        tree = build({"a": ["c", "b"]})
        assert [child.id for child in tree.dependencies] == ["c", "b"]

    def test_titles_carried(self):
        tree = build({"a": ["b"]})
        assert tree.dependencies[0].title == "B"

    def test_depth_counts_edges(self):
        edges = {"a": ["b"], "b": ["c"], "c": ["d"]}

        assert shape(build(edges, max_depth=0)) == ("a", [])
        assert shape(build(edges, max_depth=1)) == ("a", [("b", [])])
        assert shape(build(edges, max_depth=2)) == ("a", [("b", [("c", [])])])

    def test_diamond_expands_each_branch(self):
        edges = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": ["e"]}

        assert shape(build(edges)) == (
            "a",
            [("b", [("d", [("e", [])])]), ("c", [("d", [("e", [])])])],
        )

    def test_cycle_emits_repeated_node_as_leaf(self):
        edges = {"a": ["b"], "b": ["a"]}

        assert shape(build(edges, max_depth=100)) == ("a", [("b", [("a", [])])])

    def test_self_loop_emits_leaf(self):
        assert shape(build({"a": ["a"]})) == ("a", [("a", [])])

    def test_cycle_below_root(self):
        edges = {"a": ["b"], "b": ["c"], "c": ["b"]}

        assert shape(build(edges)) == ("a", [("b", [("c", [("b", [])])])])
