"""TaskGraph facade wiring one store to both relation managers."""

import uuid
from dataclasses import dataclass, field

import structlog

from taskgraph.config import TaskGraphConfig
from taskgraph.errors import TaskNotFoundError
from taskgraph.graph.dependency_manager import DependencyGraphManager
from taskgraph.graph.hierarchy_manager import HierarchyManager
from taskgraph.graph.validator import GraphValidator, ValidationReport
from taskgraph.models import DependencyEdge, PriorityLevel, Task, TaskStatus
from taskgraph.store.base import TaskStore

logger = structlog.get_logger(__name__)


@dataclass
class DeletionResult:
    """What a task deletion removed besides the record itself.

    Attributes:
        task_id: The deleted task
        removed_edges: Dependency edges that named the task
        orphaned_ids: Former children whose parent pointer was cleared
    """

    task_id: str
    removed_edges: list[DependencyEdge] = field(default_factory=list)
    orphaned_ids: list[str] = field(default_factory=list)


class TaskGraph:
    """Entry point for request handlers.

    Builds a DependencyGraphManager and a HierarchyManager over the same
    injected store, and owns the task lifecycle operations that touch both
    relations at once.

    Example:
        >>> graph = TaskGraph(InMemoryTaskStore())
        >>> epic = graph.create_task("Launch", task_id="epic-1")
        >>> story = graph.create_task("Write copy", task_id="story-1", parent_id="epic-1")
        >>> graph.dependencies.add_dependency("epic-1", "story-1")
        >>> graph.delete_task("story-1").removed_edges
        [DependencyEdge(dependent_id='epic-1', dependency_id='story-1')]
    """

    def __init__(self, store: TaskStore, config: TaskGraphConfig | None = None):
        """Initialize the facade.

        Args:
            store: Store shared by both managers
            config: Configuration (defaults are used when omitted)
        """
        self.store = store
        self.config = config or TaskGraphConfig()
        self.dependencies = DependencyGraphManager(store, self.config)
        self.hierarchy = HierarchyManager(store, self.config)
        self.validator = GraphValidator()

    def create_task(
        self,
        title: str,
        task_id: str | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        priority: PriorityLevel | None = PriorityLevel.MEDIUM,
        parent_id: str | None = None,
    ) -> Task:
        """Create a task, optionally attaching it under parent_id.

        Args:
            title: Task title
            task_id: Explicit id (a UUID4 is generated when omitted)
            status: Initial status
            priority: Initial priority
            parent_id: Optional parent; attached through the hierarchy guards

        Returns:
            The stored task

        Raises:
            ValueError: If a task with task_id already exists
            TaskNotFoundError: If parent_id does not exist
        """
        task_id = task_id or str(uuid.uuid4())

        with self.store.transaction():
            if self.store.get_task(task_id) is not None:
                msg = f"Task with id {task_id} already exists"
                raise ValueError(msg)

            if parent_id is not None and self.store.get_task(parent_id) is None:
                raise TaskNotFoundError(parent_id)

            self.store.add_task(Task(id=task_id, title=title, status=status, priority=priority))
            if parent_id is not None:
                self.hierarchy.add_subtask(parent_id, task_id)

        logger.info("task_created", task_id=task_id, parent_id=parent_id)
        return self.get_task(task_id)

    def get_task(self, task_id: str) -> Task:
        """Return a task.

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def delete_task(self, task_id: str) -> DeletionResult:
        """Delete a task and cascade both relations atomically.

        Every dependency edge touching the task is removed and every direct
        child is orphaned (never deleted) before the record goes away.

        Raises:
            TaskNotFoundError: If task_id does not exist
        """
        with self.store.transaction():
            self.get_task(task_id)
            removed_edges = self.dependencies.cascade_delete_edges(task_id)
            orphaned_ids = self.hierarchy.cascade_delete_edges(task_id)
            self.store.remove_task(task_id)

        logger.info(
            "task_deleted",
            task_id=task_id,
            removed_edge_count=len(removed_edges),
            orphaned_count=len(orphaned_ids),
        )
        return DeletionResult(
            task_id=task_id, removed_edges=removed_edges, orphaned_ids=orphaned_ids,
        )

    def validate(self) -> ValidationReport:
        """Audit the whole store for cycles and dangling references."""
        return self.validator.validate(self.store)
