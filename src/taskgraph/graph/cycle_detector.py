"""Stateless reachability and cycle detection over edge snapshots.

Every function takes an adjacency mapping ``node -> iterable of neighbours``
supplied by the caller (see ``taskgraph.store.dependency_adjacency`` and
``parent_adjacency``) and never touches a store. All searches keep a
visited set, so they terminate even when the snapshot already contains a
cycle.
"""

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from enum import Enum

EdgeView = Mapping[str, Iterable[str]]


class Direction(Enum):
    """Which way to walk the edges of a snapshot.

    For the dependency relation (dependent -> dependency) FORWARD walks
    towards dependencies. For the hierarchy relation (child -> parent)
    FORWARD walks towards ancestors and REVERSE towards descendants.
    """

    FORWARD = "forward"
    REVERSE = "reverse"
    BOTH = "both"


def invert_edges(edges: EdgeView) -> dict[str, set[str]]:
    """Return the inverted adjacency mapping (``neighbour -> {node}``)."""
    inverted: dict[str, set[str]] = {}
    for node, neighbours in edges.items():
        for neighbour in neighbours:
            inverted.setdefault(neighbour, set()).add(node)
    return inverted


def _walker(edges: EdgeView, direction: Direction) -> Callable[[str], list[str]]:
    inverted = invert_edges(edges) if direction is not Direction.FORWARD else {}

    def neighbours(node: str) -> list[str]:
        found: list[str] = []
        if direction in (Direction.FORWARD, Direction.BOTH):
            found.extend(sorted(edges.get(node, ())))
        if direction in (Direction.REVERSE, Direction.BOTH):
            found.extend(sorted(inverted.get(node, ())))
        return found

    return neighbours


def find_path(
    edges: EdgeView,
    start: str,
    target: str,
    direction: Direction = Direction.FORWARD,
) -> list[str] | None:
    """Find the shortest path from start to target with a BFS.

    Returns:
        List of ids from start to target inclusive, ``[start]`` when they are
        equal, or None when target is unreachable
    """
    if start == target:
        return [start]

    neighbours = _walker(edges, direction)
    previous: dict[str, str] = {}
    visited = {start}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for nxt in neighbours(current):
            if nxt in visited:
                continue
            previous[nxt] = current
            if nxt == target:
                path = [target]
                while path[-1] != start:
                    path.append(previous[path[-1]])
                path.reverse()
                return path
            visited.add(nxt)
            queue.append(nxt)

    return None


def is_reachable(
    edges: EdgeView,
    start: str,
    target: str,
    direction: Direction = Direction.FORWARD,
) -> bool:
    """Check whether target can be reached from start in the given direction."""
    return find_path(edges, start, target, direction) is not None


def would_create_cycle(edges: EdgeView, source: str, target: str) -> bool:
    """Check whether adding the edge ``source -> target`` would close a cycle.

    The edge closes a loop exactly when ``source == target`` or a directed
    path ``target -> ... -> source`` already exists.
    """
    return source == target or is_reachable(edges, target, source)


def collect_reachable(
    edges: EdgeView,
    start: str,
    direction: Direction = Direction.FORWARD,
) -> list[str]:
    """List every node reachable from start, in BFS order, excluding start."""
    neighbours = _walker(edges, direction)
    visited = {start}
    order: list[str] = []
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for nxt in neighbours(current):
            if nxt not in visited:
                visited.add(nxt)
                order.append(nxt)
                queue.append(nxt)

    return order


def find_cycles(edges: EdgeView) -> list[list[str]]:
    """Detect cycles with an iterative DFS, one per back edge found.

    Each cycle is reported as a closed path, e.g. ``["a", "b", "a"]``.
    Nodes are visited in sorted order so the result is deterministic.
    """
    all_nodes = set(edges)
    for neighbours in edges.values():
        all_nodes.update(neighbours)

    visited: set[str] = set()
    cycles: list[list[str]] = []

    for root in sorted(all_nodes):
        if root in visited:
            continue

        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(sorted(edges.get(root, ())))]

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                # Backtrack
                stack.pop()
                on_path.discard(path.pop())
                continue

            if nxt in on_path:
                cycles.append([*path[path.index(nxt):], nxt])
            elif nxt not in visited:
                visited.add(nxt)
                path.append(nxt)
                on_path.add(nxt)
                stack.append(iter(sorted(edges.get(nxt, ()))))

    return cycles
