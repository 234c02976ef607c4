"""Bounded tree construction shared by the dependency and hierarchy queries."""

from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog

from taskgraph.config import TraversalConfig
from taskgraph.models import Task

logger = structlog.get_logger(__name__)


class TreeNode(Protocol):
    id: str

    def add_child(self, child: "TreeNode") -> None: ...


NodeT = TypeVar("NodeT", bound=TreeNode)


def resolve_max_depth(max_depth: int | None, traversal: TraversalConfig) -> int:
    """Apply the configured default and upper limit to a requested depth.

    Args:
        max_depth: Requested depth, or None for the configured default
        traversal: Traversal settings

    Returns:
        Effective depth bound

    Raises:
        ValueError: If max_depth is negative
    """
    if max_depth is None:
        return traversal.default_max_depth

    if max_depth < 0:
        msg = f"max_depth must be >= 0, got {max_depth}"
        raise ValueError(msg)

    if max_depth > traversal.max_depth_limit:
        logger.warning(
            "max_depth_clamped",
            requested=max_depth,
            limit=traversal.max_depth_limit,
        )
        return traversal.max_depth_limit

    return max_depth


def build_tree(
    root: Task,
    expand: Callable[[str], list[Task]],
    make_node: Callable[[Task], NodeT],
    max_depth: int,
) -> NodeT:
    """Build a nested tree from root by repeatedly expanding node ids.

    Uses an explicit worklist instead of recursion. Each worklist entry
    carries the set of ids on its own root path, so a node shared by two
    branches (a diamond) is expanded on both, while a node that repeats on
    the current path is emitted as a leaf and its branch stops there. Depth
    is counted in edges: nodes at ``depth == max_depth`` keep an empty child
    list.

    Args:
        root: Task at the root of the tree
        expand: Returns the child tasks of an id, in display order
        make_node: Creates an empty result node from a task
        max_depth: Maximum number of edges to follow from the root

    Returns:
        The root node with its children attached
    """
    root_node = make_node(root)
    worklist: list[tuple[NodeT, int, frozenset[str]]] = [(root_node, 0, frozenset({root.id}))]

    while worklist:
        node, depth, path = worklist.pop()
        if depth >= max_depth:
            continue

        for child_task in expand(node.id):
            child_node = make_node(child_task)
            node.add_child(child_node)

            if child_task.id in path:
                logger.warning(
                    "cycle_encountered_during_traversal",
                    task_id=child_task.id,
                    parent_id=node.id,
                    depth=depth + 1,
                )
                continue

            worklist.append((child_node, depth + 1, path | {child_task.id}))

    return root_node
