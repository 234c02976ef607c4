"""Hierarchy (subtask) relation manager.

Each task has at most one parent; children are derived from parent
pointers. The HierarchyManager keeps that relation a forest: no task is its
own parent and following parent pointers from any task terminates.
"""

import structlog

from taskgraph.config import TaskGraphConfig
from taskgraph.errors import (
    CycleDetectedError,
    SelfReferenceError,
    SubtaskAlreadyParentedError,
    SubtaskNotFoundError,
    TaskNotFoundError,
)
from taskgraph.graph.cycle_detector import Direction, find_path
from taskgraph.graph.tree_builder import build_tree, resolve_max_depth
from taskgraph.models import SubtaskNode, Task
from taskgraph.store.base import TaskStore, parent_adjacency

logger = structlog.get_logger(__name__)


class HierarchyManager:
    """Guarded mutations and queries for the subtask relation.

    Re-parenting policy:
        By default ``add_subtask`` on a child that already has a different
        parent moves it. With ``hierarchy.allow_reparent`` disabled it raises
        SubtaskAlreadyParentedError and the move must go through
        ``move_subtask``.

    Example:
        >>> manager = HierarchyManager(store)
        >>> manager.add_subtask("epic-1", "story-1")
        >>> [task.id for task in manager.get_children("epic-1")]
        ['story-1']
        >>> manager.add_subtask("story-1", "epic-1")  # Raises CycleDetectedError
    """

    def __init__(self, store: TaskStore, config: TaskGraphConfig | None = None):
        """Initialize the manager.

        Args:
            store: Store holding task records and parent pointers
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

    def _attach(self, parent_id: str, child_id: str, allow_move: bool) -> None:
        with self.store.transaction():
            self._require_task(parent_id)
            child = self._require_task(child_id)

            if parent_id == child_id:
                logger.warning("self_parenting_rejected", task_id=child_id)
                raise SelfReferenceError(child_id)

            if child.parent_id == parent_id:
                logger.debug("subtask_already_attached", parent_id=parent_id, child_id=child_id)
                return

            # The hierarchy is a forest, so only an ancestor check is needed:
            # child must not already sit above parent.
            path = find_path(parent_adjacency(self.store), parent_id, child_id, Direction.FORWARD)
            if path is not None:
                cycle = [*path, parent_id]
                logger.warning(
                    "hierarchy_cycle_rejected",
                    parent_id=parent_id,
                    child_id=child_id,
                    cycle=cycle,
                )
                msg = (
                    f"Making {child_id} a subtask of {parent_id} would create a cycle: "
                    f"{child_id} is already an ancestor of {parent_id}"
                )
                raise CycleDetectedError(msg, path=cycle)

            previous_parent = child.parent_id
            if previous_parent is not None and not allow_move:
                logger.warning(
                    "subtask_already_parented",
                    child_id=child_id,
                    current_parent_id=previous_parent,
                    requested_parent_id=parent_id,
                )
                raise SubtaskAlreadyParentedError(child_id, previous_parent)

            self.store.set_parent(child_id, parent_id)

        if previous_parent is None:
            logger.info("subtask_added", parent_id=parent_id, child_id=child_id)
        else:
            logger.info(
                "subtask_moved",
                child_id=child_id,
                previous_parent_id=previous_parent,
                parent_id=parent_id,
            )

    def add_subtask(self, parent_id: str, child_id: str) -> None:
        """Make child_id a direct subtask of parent_id.

        Adding a child to its current parent is a no-op.

        Raises:
            TaskNotFoundError: If either task does not exist
            SelfReferenceError: If both ids are the same
            CycleDetectedError: If child_id is already an ancestor of parent_id
            SubtaskAlreadyParentedError: If the child has another parent and
                re-parenting is disabled
        """
        self._attach(parent_id, child_id, allow_move=self.config.hierarchy.allow_reparent)

    def move_subtask(self, child_id: str, new_parent_id: str) -> None:
        """Explicitly re-parent child_id under new_parent_id.

        Runs the same checks as add_subtask but always allows the move.
        """
        self._attach(new_parent_id, child_id, allow_move=True)

    def set_parent(self, child_id: str, parent_id: str | None) -> None:
        """Set or clear the parent of child_id.

        With a parent id this is add_subtask; with None it detaches the
        child from whatever parent it has (no error when it has none).
        """
        if parent_id is not None:
            self.add_subtask(parent_id, child_id)
            return

        with self.store.transaction():
            child = self._require_task(child_id)
            if child.parent_id is None:
                return
            self.store.set_parent(child_id, None)

        logger.info("subtask_detached", child_id=child_id, previous_parent_id=child.parent_id)

    def remove_subtask(self, parent_id: str, child_id: str) -> None:
        """Detach child_id from parent_id.

        Raises:
            TaskNotFoundError: If either task does not exist
            SubtaskNotFoundError: If child_id is not a direct subtask of parent_id
        """
        with self.store.transaction():
            self._require_task(parent_id)
            child = self._require_task(child_id)

            if child.parent_id != parent_id:
                logger.warning("subtask_not_found", parent_id=parent_id, child_id=child_id)
                raise SubtaskNotFoundError(child_id, parent_id)

            self.store.set_parent(child_id, None)

        logger.info("subtask_removed", parent_id=parent_id, child_id=child_id)

    def get_parent(self, child_id: str) -> Task | None:
        """Return the direct parent of child_id, or None for a root task.

        Raises:
            TaskNotFoundError: If child_id does not exist
        """
        child = self._require_task(child_id)
        if child.parent_id is None:
            return None

        parent = self.store.get_task(child.parent_id)
        if parent is None:
            logger.warning("dangling_parent_reference", task_id=child_id, parent_id=child.parent_id)
        return parent

    def get_children(self, parent_id: str) -> list[Task]:
        """Return the direct subtasks of parent_id.

        Raises:
            TaskNotFoundError: If parent_id does not exist
        """
        self._require_task(parent_id)
        return self._children_of(parent_id)

    def _children_of(self, parent_id: str) -> list[Task]:
        children = []
        for child_id in self.store.get_children(parent_id):
            child = self.store.get_task(child_id)
            if child is not None:
                children.append(child)
        return children

    def list_ancestors(self, task_id: str) -> list[str]:
        """Return the parent chain of task_id, nearest first.

        Stops at the first repeated id, so a corrupted (cyclic) chain still
        terminates.

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        self._require_task(task_id)

        ancestors: list[str] = []
        seen = {task_id}
        current = self.store.get_parent(task_id)
        while current is not None and current not in seen:
            ancestors.append(current)
            seen.add(current)
            current = self.store.get_parent(current)

        if current is not None:
            logger.warning("hierarchy_cycle_encountered", task_id=task_id, repeated_id=current)
        return ancestors

    def build_subtree(self, root_id: str, max_depth: int | None = None) -> SubtaskNode:
        """Build the nested subtask tree rooted at root_id.

        Args:
            root_id: Root task
            max_depth: Maximum number of levels below the root (configured
                default when None). ``max_depth=1`` yields the direct
                children, each with an empty subtasks list.

        Returns:
            Root SubtaskNode

        Raises:
            TaskNotFoundError: If root_id does not exist
            ValueError: If max_depth is negative
        """
        root = self._require_task(root_id)
        depth = resolve_max_depth(max_depth, self.config.traversal)

        tree = build_tree(
            root,
            expand=self._children_of,
            make_node=SubtaskNode.from_task,
            max_depth=depth,
        )

        logger.debug("subtask_tree_built", root_id=root_id, max_depth=depth)
        return tree

    def cascade_delete_edges(self, task_id: str) -> list[str]:
        """Orphan every direct child of task_id (children are never deleted).

        Called when a task is deleted. The task's own membership in its
        parent's child list disappears with the record, since child lists are
        derived from parent pointers.

        Returns:
            Ids of the orphaned children

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        with self.store.transaction():
            self._require_task(task_id)
            orphaned = self.store.get_children(task_id)
            for child_id in orphaned:
                self.store.set_parent(child_id, None)

        logger.info("subtasks_orphaned", task_id=task_id, orphaned=orphaned)
        return orphaned
