"""Walkthrough of the task graph managers with structured logging.

Builds a small launch plan, shows both relations rejecting cycles, maps the
errors to HTTP statuses the way a request handler would, and prints the
bounded trees.
"""

import json

from taskgraph import (
    CycleDetectedError,
    EdgeAlreadyExistsError,
    InMemoryTaskStore,
    PriorityLevel,
    TaskGraph,
    TaskGraphConfig,
    status_for_error,
)
from taskgraph.log_config import (
    bind_request_id,
    clear_context,
    configure_logging,
    get_logger,
)


def handle(graph: TaskGraph, request_id: str, operation, *args) -> int:
    """Run one mutation the way an HTTP handler would and return its status."""
    logger = get_logger(__name__)
    bind_request_id(request_id)
    try:
        operation(*args)
    except (CycleDetectedError, EdgeAlreadyExistsError) as e:
        status = status_for_error(e, graph.config.api.duplicate_edge_status)
        logger.info("request_rejected", status=status, error=e.message)
        return status
    finally:
        clear_context()
    return 201


def main() -> None:
    config = TaskGraphConfig()
    configure_logging(config.logging_level, json_logs=False)
    graph = TaskGraph(InMemoryTaskStore(), config)

    graph.create_task("Product launch", task_id="launch", priority=PriorityLevel.HIGH)
    graph.create_task("Write copy", task_id="copy", parent_id="launch")
    graph.create_task("Build site", task_id="site", parent_id="launch")
    graph.create_task("Screenshots", task_id="assets", parent_id="site")

    print(handle(graph, "req-1", graph.dependencies.add_dependency, "site", "copy"))
    print(handle(graph, "req-2", graph.dependencies.add_dependency, "copy", "site"))  # 400
    print(handle(graph, "req-3", graph.dependencies.add_dependency, "site", "copy"))  # 409
    print(handle(graph, "req-4", graph.hierarchy.add_subtask, "assets", "launch"))  # 400

    print(json.dumps(graph.hierarchy.build_subtree("launch").to_dict(), indent=2))
    print(json.dumps(graph.dependencies.build_dependency_tree("site").to_dict(), indent=2))
    print(graph.validator.generate_visualization(graph.store, "mermaid"))


if __name__ == "__main__":
    main()
