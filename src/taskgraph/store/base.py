"""TaskStore collaborator interface.

The integrity subsystem never owns persistence. Managers talk to a store
through the primitives below; any backend (SQL, document, in-memory) that
implements them can be injected.
"""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from taskgraph.models import DependencyEdge, Task


@runtime_checkable
class TaskStore(Protocol):
    """Primitive task, dependency-edge and parent-link operations.

    ``transaction()`` must provide a single-writer serialization point: the
    managers perform their validate-then-mutate sequence inside it, so two
    writers that would only together close a cycle cannot both pass
    validation. It must be re-entrant for the calling thread.
    """

    def transaction(self) -> AbstractContextManager[None]: ...

    # Task records
    def get_task(self, task_id: str) -> Task | None: ...

    def list_tasks(self) -> list[Task]: ...

    def add_task(self, task: Task) -> None: ...

    def remove_task(self, task_id: str) -> None: ...

    # Dependency relation
    def has_dependency_edge(self, dependent_id: str, dependency_id: str) -> bool: ...

    def add_dependency_edge(self, dependent_id: str, dependency_id: str) -> None: ...

    def remove_dependency_edge(self, dependent_id: str, dependency_id: str) -> None: ...

    def edges_from(self, dependent_id: str) -> list[str]: ...

    def edges_to(self, dependency_id: str) -> list[str]: ...

    def dependency_edges(self) -> Iterable[DependencyEdge]: ...

    # Hierarchy relation
    def get_parent(self, task_id: str) -> str | None: ...

    def set_parent(self, task_id: str, parent_id: str | None) -> None: ...

    def get_children(self, task_id: str) -> list[str]: ...

    def parent_links(self) -> dict[str, str]: ...


def dependency_adjacency(store: TaskStore) -> dict[str, set[str]]:
    """Snapshot the dependency relation as ``dependent -> {dependencies}``."""
    graph: dict[str, set[str]] = {}
    for edge in store.dependency_edges():
        graph.setdefault(edge.dependent_id, set()).add(edge.dependency_id)
    return graph


def parent_adjacency(store: TaskStore) -> dict[str, set[str]]:
    """Snapshot the hierarchy relation as ``child -> {parent}`` (upward edges)."""
    return {child: {parent} for child, parent in store.parent_links().items()}
