"""In-memory TaskStore with a single-writer lock and YAML snapshot loading.

This store is the reference collaborator used by the CLI and the tests. It
keeps tasks, dependency edges and parent pointers in dictionaries keyed by
task id, so every relation is an explicit id collection rather than a web
of object references.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog
import yaml

from taskgraph.models import DependencyEdge, Task

logger = structlog.get_logger(__name__)

EDGE_PAIR_LENGTH = 2


class InMemoryTaskStore:
    """Thread-safe dictionary-backed store.

    Every primitive takes an internal ``threading.RLock``; ``transaction()``
    holds the same lock for the duration of a block so a manager's
    validate-then-mutate sequence is atomic with respect to other writers.

    Primitives do not enforce graph invariants. That is the managers' job,
    and raw loading (``from_snapshot``) can therefore represent malformed
    data for auditing.

    Example:
        >>> store = InMemoryTaskStore()
        >>> store.add_task(Task(id="task-1", title="Write docs"))
        >>> store.add_task(Task(id="task-2", title="Review docs"))
        >>> store.add_dependency_edge("task-2", "task-1")
        >>> store.edges_from("task-2")
        ['task-1']
    """

    def __init__(self):
        """Initialize an empty store."""
        self._tasks: dict[str, Task] = {}
        # dependent -> dependencies, dependency -> dependents; dict keys keep insertion order
        self._forward: dict[str, dict[str, None]] = {}
        self._reverse: dict[str, dict[str, None]] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    # Task records

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            return replace(task, subtask_ids=self._children_of(task_id))

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return [
                replace(task, subtask_ids=self._children_of(task.id))
                for task in self._tasks.values()
            ]

    def add_task(self, task: Task) -> None:
        """Insert or replace a task record.

        Raises:
            ValueError: If the task id is empty
        """
        if not task.id:
            msg = "Task id must not be empty"
            raise ValueError(msg)

        with self._lock:
            self._tasks[task.id] = replace(task, subtask_ids=[])
            logger.debug("task_stored", task_id=task.id, parent_id=task.parent_id)

    def remove_task(self, task_id: str) -> None:
        """Remove a task record and any edges still naming it."""
        with self._lock:
            self._tasks.pop(task_id, None)
            for dependency_id in self._forward.pop(task_id, {}):
                self._reverse.get(dependency_id, {}).pop(task_id, None)
            for dependent_id in self._reverse.pop(task_id, {}):
                self._forward.get(dependent_id, {}).pop(task_id, None)
            logger.debug("task_removed_from_store", task_id=task_id)

    # Dependency relation

    def has_dependency_edge(self, dependent_id: str, dependency_id: str) -> bool:
        with self._lock:
            return dependency_id in self._forward.get(dependent_id, {})

    def add_dependency_edge(self, dependent_id: str, dependency_id: str) -> None:
        with self._lock:
            self._forward.setdefault(dependent_id, {})[dependency_id] = None
            self._reverse.setdefault(dependency_id, {})[dependent_id] = None

    def remove_dependency_edge(self, dependent_id: str, dependency_id: str) -> None:
        with self._lock:
            self._forward.get(dependent_id, {}).pop(dependency_id, None)
            self._reverse.get(dependency_id, {}).pop(dependent_id, None)

    def edges_from(self, dependent_id: str) -> list[str]:
        with self._lock:
            return list(self._forward.get(dependent_id, {}))

    def edges_to(self, dependency_id: str) -> list[str]:
        with self._lock:
            return list(self._reverse.get(dependency_id, {}))

    def dependency_edges(self) -> list[DependencyEdge]:
        with self._lock:
            return [
                DependencyEdge(dependent_id, dependency_id)
                for dependent_id, dependencies in self._forward.items()
                for dependency_id in dependencies
            ]

    # Hierarchy relation

    def get_parent(self, task_id: str) -> str | None:
        with self._lock:
            task = self._tasks.get(task_id)
            return task.parent_id if task else None

    def set_parent(self, task_id: str, parent_id: str | None) -> None:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                msg = f"Unknown task {task_id}"
                raise KeyError(msg)
            task.parent_id = parent_id

    def get_children(self, task_id: str) -> list[str]:
        with self._lock:
            return self._children_of(task_id)

    def parent_links(self) -> dict[str, str]:
        with self._lock:
            return {
                task.id: task.parent_id
                for task in self._tasks.values()
                if task.parent_id is not None
            }

    def _children_of(self, task_id: str) -> list[str]:
        return [task.id for task in self._tasks.values() if task.parent_id == task_id]

    # Snapshots

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> "InMemoryTaskStore":
        """Build a store from a snapshot mapping without running any guards.

        Args:
            data: Mapping with a ``tasks`` list and an optional
                ``dependencies`` list. Each dependency is either a mapping
                ``{dependent: ..., dependency: ...}`` or a two-item list.

        Returns:
            Populated store

        Raises:
            ValueError: If the snapshot structure is malformed
        """
        if not isinstance(data, dict):
            msg = "Snapshot must be a mapping with a 'tasks' list"
            raise ValueError(msg)  # noqa: TRY004

        store = cls()
        for entry in data.get("tasks") or []:
            if not isinstance(entry, dict):
                msg = f"Invalid task entry: {entry!r}"
                raise ValueError(msg)  # noqa: TRY004
            store.add_task(Task.from_dict(entry))

        for entry in data.get("dependencies") or []:
            if isinstance(entry, dict):
                dependent_id = entry.get("dependent")
                dependency_id = entry.get("dependency")
            elif isinstance(entry, (list, tuple)) and len(entry) == EDGE_PAIR_LENGTH:
                dependent_id, dependency_id = entry
            else:
                msg = f"Invalid dependency entry: {entry!r}"
                raise ValueError(msg)

            if dependent_id in (None, "") or dependency_id in (None, ""):
                msg = f"Dependency entry needs both endpoints: {entry!r}"
                raise ValueError(msg)
            store.add_dependency_edge(str(dependent_id), str(dependency_id))

        logger.info(
            "snapshot_loaded",
            task_count=len(store._tasks),
            dependency_count=len(store.dependency_edges()),
        )
        return store

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryTaskStore":
        """Load a snapshot file (YAML or JSON) into a new store.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is empty, unparsable or malformed
        """
        snapshot_path = Path(path)
        if not snapshot_path.exists():
            msg = f"Snapshot file not found: {snapshot_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_snapshot", path=str(snapshot_path))

        try:
            with snapshot_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("snapshot_parse_error", error=str(e), path=str(snapshot_path))
            msg = f"Invalid YAML in snapshot file: {e}"
            raise ValueError(msg) from e

        if not data:
            msg = "Snapshot file is empty"
            raise ValueError(msg)

        return cls.from_snapshot(data)

    def to_snapshot(self) -> dict[str, Any]:
        """Dump the store back into the snapshot shape read by from_snapshot."""
        with self._lock:
            tasks = []
            for task in self._tasks.values():
                entry = task.to_dict()
                entry.pop("subtask_ids")
                tasks.append(entry)
            return {
                "tasks": tasks,
                "dependencies": [
                    {"dependent": edge.dependent_id, "dependency": edge.dependency_id}
                    for edge in self.dependency_edges()
                ],
            }
