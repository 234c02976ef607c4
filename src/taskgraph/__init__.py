"""Task graph integrity subsystem.

Keeps the dependency relation and the subtask hierarchy between tasks free
of cycles and self-references, and answers bounded tree queries over both.
"""

from taskgraph.config import TaskGraphConfig
from taskgraph.errors import (
    CycleDetectedError,
    EdgeAlreadyExistsError,
    EdgeNotFoundError,
    SelfReferenceError,
    SubtaskAlreadyParentedError,
    SubtaskNotFoundError,
    TaskGraphError,
    TaskNotFoundError,
    status_for_error,
)
from taskgraph.graph import DependencyGraphManager, GraphValidator, HierarchyManager
from taskgraph.models import (
    DependencyEdge,
    DependencyNode,
    PriorityLevel,
    SubtaskNode,
    Task,
    TaskStatus,
)
from taskgraph.service import DeletionResult, TaskGraph
from taskgraph.store import InMemoryTaskStore, TaskStore

__version__ = "0.1.0"

__all__ = [
    "CycleDetectedError",
    "DeletionResult",
    "DependencyEdge",
    "DependencyGraphManager",
    "DependencyNode",
    "EdgeAlreadyExistsError",
    "EdgeNotFoundError",
    "GraphValidator",
    "HierarchyManager",
    "InMemoryTaskStore",
    "PriorityLevel",
    "SelfReferenceError",
    "SubtaskAlreadyParentedError",
    "SubtaskNotFoundError",
    "SubtaskNode",
    "Task",
    "TaskGraph",
    "TaskGraphConfig",
    "TaskGraphError",
    "TaskNotFoundError",
    "TaskStatus",
    "TaskStore",
    "status_for_error",
]
