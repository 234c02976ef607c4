"""Dependency relation manager.

This module provides the DependencyGraphManager class which owns the
invariants of the "depends on" relation: no self-dependencies, at most one
edge per ordered pair and no directed cycles. It also answers the listing
and bounded tree queries over that relation.
"""

import structlog

from taskgraph.config import TaskGraphConfig
from taskgraph.errors import (
    CycleDetectedError,
    EdgeAlreadyExistsError,
    EdgeNotFoundError,
    SelfReferenceError,
    TaskNotFoundError,
)
from taskgraph.graph.cycle_detector import Direction, collect_reachable, find_path
from taskgraph.graph.tree_builder import build_tree, resolve_max_depth
from taskgraph.models import DependencyEdge, DependencyNode, Task
from taskgraph.store.base import TaskStore, dependency_adjacency

logger = structlog.get_logger(__name__)


class DependencyGraphManager:
    """Guarded mutations and queries for the dependency relation.

    Every mutation follows the same protocol inside ``store.transaction()``:
    validate existence, validate no self-reference, validate no duplicate or
    induced cycle, then mutate. The manager holds no graph state of its own;
    everything is read from the injected store.

    Example:
        >>> store = InMemoryTaskStore()
        >>> for task_id in ("task-1", "task-2"):
        ...     store.add_task(Task(id=task_id, title=task_id))
        >>> manager = DependencyGraphManager(store)
        >>> manager.add_dependency("task-2", "task-1")
        >>> [task.id for task in manager.list_dependencies("task-2")]
        ['task-1']
        >>> manager.add_dependency("task-1", "task-2")  # Raises CycleDetectedError
    """

    def __init__(self, store: TaskStore, config: TaskGraphConfig | None = None):
        """Initialize the manager.

        Args:
            store: Store holding task records and dependency edges
            config: Configuration (defaults are used when omitted)
        """
        self.store = store
        self.config = config or TaskGraphConfig()

    def _require_task(self, task_id: str) -> Task:
        task = self.store.get_task(task_id)
        if task is None:
            logger.warning("task_not_found", task_id=task_id)
            raise TaskNotFoundError(task_id)
        return task

    def _tasks_for(self, task_ids: list[str]) -> list[Task]:
        tasks = []
        for task_id in task_ids:
            task = self.store.get_task(task_id)
            if task is None:
                logger.warning("dangling_dependency_reference", task_id=task_id)
                continue
            tasks.append(task)
        return tasks

    def add_dependency(self, dependent_id: str, dependency_id: str) -> DependencyEdge:
        """Record that dependent_id depends on dependency_id.

        Args:
            dependent_id: Task that depends on the other
            dependency_id: Task that is depended on

        Returns:
            The persisted edge

        Raises:
            TaskNotFoundError: If either task does not exist
            SelfReferenceError: If both ids are the same
            EdgeAlreadyExistsError: If the edge is already present
            CycleDetectedError: If dependency_id already (transitively)
                depends on dependent_id
        """
        with self.store.transaction():
            self._require_task(dependent_id)
            self._require_task(dependency_id)

            if dependent_id == dependency_id:
                logger.warning("self_dependency_rejected", task_id=dependent_id)
                raise SelfReferenceError(dependent_id)

            if self.store.has_dependency_edge(dependent_id, dependency_id):
                logger.warning(
                    "duplicate_dependency_rejected",
                    dependent_id=dependent_id,
                    dependency_id=dependency_id,
                )
                raise EdgeAlreadyExistsError(dependent_id, dependency_id)

            # A path dependency -> ... -> dependent would be closed by the new edge
            path = find_path(dependency_adjacency(self.store), dependency_id, dependent_id)
            if path is not None:
                cycle = [dependent_id, *path]
                logger.warning(
                    "dependency_cycle_rejected",
                    dependent_id=dependent_id,
                    dependency_id=dependency_id,
                    cycle=cycle,
                )
                msg = (
                    f"Adding dependency {dependent_id} -> {dependency_id} would create a cycle: "
                    f"{' -> '.join(cycle)}"
                )
                raise CycleDetectedError(msg, path=cycle)

            self.store.add_dependency_edge(dependent_id, dependency_id)

        logger.info("dependency_added", dependent_id=dependent_id, dependency_id=dependency_id)
        return DependencyEdge(dependent_id, dependency_id)

    def remove_dependency(self, dependent_id: str, dependency_id: str) -> None:
        """Delete the edge dependent_id -> dependency_id.

        Raises:
            TaskNotFoundError: If either task does not exist
            EdgeNotFoundError: If the edge is absent
        """
        with self.store.transaction():
            self._require_task(dependent_id)
            self._require_task(dependency_id)

            if not self.store.has_dependency_edge(dependent_id, dependency_id):
                logger.warning(
                    "dependency_not_found",
                    dependent_id=dependent_id,
                    dependency_id=dependency_id,
                )
                raise EdgeNotFoundError(dependent_id, dependency_id)

            self.store.remove_dependency_edge(dependent_id, dependency_id)

        logger.info("dependency_removed", dependent_id=dependent_id, dependency_id=dependency_id)

    def list_dependencies(self, task_id: str) -> list[Task]:
        """Return the tasks task_id directly depends on.

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        self._require_task(task_id)
        return self._tasks_for(self.store.edges_from(task_id))

    def list_dependents(self, task_id: str) -> list[Task]:
        """Return the tasks that directly depend on task_id.

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        self._require_task(task_id)
        return self._tasks_for(self.store.edges_to(task_id))

    def list_transitive_dependencies(self, task_id: str) -> list[str]:
        """Return ids of every task task_id depends on, directly or not, in BFS order."""
        self._require_task(task_id)
        return collect_reachable(dependency_adjacency(self.store), task_id, Direction.FORWARD)

    def list_transitive_dependents(self, task_id: str) -> list[str]:
        """Return ids of every task that depends on task_id, directly or not."""
        self._require_task(task_id)
        return collect_reachable(dependency_adjacency(self.store), task_id, Direction.REVERSE)

    def blocking_dependencies(self, task_id: str) -> list[Task]:
        """Return direct dependencies of task_id that are not completed yet."""
        return [task for task in self.list_dependencies(task_id) if not task.is_completed]

    def can_be_completed(self, task_id: str) -> bool:
        """Check whether every direct dependency of task_id is completed."""
        return not self.blocking_dependencies(task_id)

    def build_dependency_tree(self, task_id: str, max_depth: int | None = None) -> DependencyNode:
        """Build the nested tree of what task_id depends on.

        Args:
            task_id: Root task
            max_depth: Maximum number of edges to follow (configured default
                when None). Nodes at the frontier have empty dependency lists.

        Returns:
            Root DependencyNode

        Raises:
            TaskNotFoundError: If task_id does not exist
            ValueError: If max_depth is negative
        """
        root = self._require_task(task_id)
        depth = resolve_max_depth(max_depth, self.config.traversal)

        tree = build_tree(
            root,
            expand=lambda node_id: self._tasks_for(self.store.edges_from(node_id)),
            make_node=DependencyNode.from_task,
            max_depth=depth,
        )

        logger.debug("dependency_tree_built", task_id=task_id, max_depth=depth)
        return tree

    def build_dependents_tree(self, task_id: str, max_depth: int | None = None) -> DependencyNode:
        """Build the nested tree of tasks that depend on task_id.

        The result uses the same node shape as build_dependency_tree; here
        each node's ``dependencies`` list holds the tasks depending on it.

        Raises:
            TaskNotFoundError: If task_id does not exist
            ValueError: If max_depth is negative
        """
        root = self._require_task(task_id)
        depth = resolve_max_depth(max_depth, self.config.traversal)

        tree = build_tree(
            root,
            expand=lambda node_id: self._tasks_for(self.store.edges_to(node_id)),
            make_node=DependencyNode.from_task,
            max_depth=depth,
        )

        logger.debug("dependents_tree_built", task_id=task_id, max_depth=depth)
        return tree

    def cascade_delete_edges(self, task_id: str) -> list[DependencyEdge]:
        """Remove every edge that has task_id as either endpoint.

        Called when a task is deleted.

        Returns:
            The removed edges

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        with self.store.transaction():
            self._require_task(task_id)

            removed = [DependencyEdge(task_id, dep) for dep in self.store.edges_from(task_id)]
            removed += [
                DependencyEdge(dependent, task_id) for dependent in self.store.edges_to(task_id)
            ]
            # A malformed self-loop shows up in both directions
            removed = list(dict.fromkeys(removed))

            for edge in removed:
                self.store.remove_dependency_edge(edge.dependent_id, edge.dependency_id)

        logger.info("dependency_edges_cascade_deleted", task_id=task_id, removed_count=len(removed))
        return removed
