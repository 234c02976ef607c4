"""Graph module for the dependency and hierarchy relations.

This module provides the cycle detection algorithms, the bounded tree
builder, the two relation managers and the store-wide integrity validator.
"""

from taskgraph.graph.cycle_detector import (
    Direction,
    collect_reachable,
    find_cycles,
    find_path,
    is_reachable,
    would_create_cycle,
)
from taskgraph.graph.dependency_manager import DependencyGraphManager
from taskgraph.graph.hierarchy_manager import HierarchyManager
from taskgraph.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "DependencyGraphManager",
    "Direction",
    "GraphValidator",
    "HierarchyManager",
    "ValidationReport",
    "collect_reachable",
    "find_cycles",
    "find_path",
    "is_reachable",
    "would_create_cycle",
]
