"""Task store collaborator interface and the in-memory reference store."""

from taskgraph.store.base import TaskStore, dependency_adjacency, parent_adjacency
from taskgraph.store.memory import InMemoryTaskStore

__all__ = ["InMemoryTaskStore", "TaskStore", "dependency_adjacency", "parent_adjacency"]
