"""Data model shared by the task store and the graph managers.

Tasks are nodes of two relations: the dependency relation, kept as a set of
``DependencyEdge`` pairs inside the store, and the hierarchy relation, kept
as a single ``parent_id`` pointer on each task.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskStatus(Enum):
    """Workflow status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PriorityLevel(Enum):
    """Priority of a task, carried through tree queries for display."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Task:
    """A task record as seen by the integrity subsystem.

    Attributes:
        id: Opaque unique identifier
        title: Human readable title
        status: Workflow status
        priority: Priority level (None when unset)
        parent_id: Id of the parent task in the hierarchy, if any
        subtask_ids: Ids of direct children, derived from the children's
            parent_id by the store
    """

    id: str
    title: str
    status: TaskStatus = TaskStatus.PENDING
    priority: PriorityLevel | None = PriorityLevel.MEDIUM
    parent_id: str | None = None
    subtask_ids: list[str] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Build a task from a plain mapping (snapshot files, fixtures).

        Raises:
            ValueError: If id is missing, or status/priority is unknown
        """
        if data.get("id") in (None, ""):
            msg = "Task entry is missing 'id'"
            raise ValueError(msg)

        priority = data.get("priority", PriorityLevel.MEDIUM.value)
        # Snapshot ids may parse as numbers; relations compare them as strings
        parent_id = data.get("parent_id")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or data["id"]),
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            priority=PriorityLevel(priority) if priority is not None else None,
            parent_id=str(parent_id) if parent_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value if self.priority else None,
            "parent_id": self.parent_id,
            "subtask_ids": list(self.subtask_ids),
        }


@dataclass(frozen=True)
class DependencyEdge:
    """Ordered pair meaning ``dependent_id`` depends on ``dependency_id``."""

    dependent_id: str
    dependency_id: str


@dataclass
class DependencyNode:
    """Node of a dependency tree query result."""

    id: str
    title: str
    status: TaskStatus
    priority: PriorityLevel | None
    dependencies: list["DependencyNode"] = field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> "DependencyNode":
        return cls(id=task.id, title=task.title, status=task.status, priority=task.priority)

    def add_child(self, child: "DependencyNode") -> None:
        self.dependencies.append(child)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value if self.priority else None,
            "dependencies": [child.to_dict() for child in self.dependencies],
        }


@dataclass
class SubtaskNode:
    """Node of a subtask (hierarchy) tree query result."""

    id: str
    title: str
    status: TaskStatus
    priority: PriorityLevel | None
    subtasks: list["SubtaskNode"] = field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> "SubtaskNode":
        return cls(id=task.id, title=task.title, status=task.status, priority=task.priority)

    def add_child(self, child: "SubtaskNode") -> None:
        self.subtasks.append(child)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value if self.priority else None,
            "subtasks": [child.to_dict() for child in self.subtasks],
        }
