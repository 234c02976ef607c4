#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

Loads a task snapshot (YAML/JSON) into an in-memory store and runs
integrity checks or tree queries against it. Results go to stdout; logs go
to stderr.
"""

import argparse
import json
import sys
from pathlib import Path

import structlog

from taskgraph.config import load_config
from taskgraph.errors import TaskGraphError
from taskgraph.log_config import configure_logging
from taskgraph.service import TaskGraph
from taskgraph.store.memory import InMemoryTaskStore

logger = structlog.get_logger(__name__)


def run(args: argparse.Namespace) -> int:
    """Execute the requested queries.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    exit_code = 0

    # Configure logging before anything logs, then again once the config file is known
    configure_logging(args.log_level or "INFO")

    try:
        config = load_config(args.config)
        if args.log_level is None:
            configure_logging(config.logging_level, json_logs=config.json_logs)

        for warning in config.validate_config():
            logger.warning("configuration_warning", message=warning)

        store = InMemoryTaskStore.from_yaml(args.snapshot)
        graph = TaskGraph(store, config)

        if args.validate:
            report = graph.validate()
            print(report.summary())
            if not report.is_valid:
                exit_code = 1

        if args.dependency_tree:
            tree = graph.dependencies.build_dependency_tree(args.dependency_tree, args.max_depth)
            print(json.dumps(tree.to_dict(), indent=2))

        if args.dependents_tree:
            tree = graph.dependencies.build_dependents_tree(args.dependents_tree, args.max_depth)
            print(json.dumps(tree.to_dict(), indent=2))

        if args.subtask_tree:
            subtree = graph.hierarchy.build_subtree(args.subtask_tree, args.max_depth)
            print(json.dumps(subtree.to_dict(), indent=2))

        if args.visualize:
            print(graph.validator.generate_visualization(store, args.visualize))

    except FileNotFoundError as e:
        logger.exception("file_not_found", error=str(e))
        exit_code = 1

    except TaskGraphError as e:
        logger.exception("task_graph_error", error=e.message)
        exit_code = 1

    except ValueError as e:
        logger.exception("invalid_input", error=str(e))
        exit_code = 1

    return exit_code


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Task graph integrity checks and tree queries over a task snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Audit a snapshot for cycles and dangling references
  python main.py --snapshot tasks.yaml --validate

  # Print what a task depends on, three levels deep
  python main.py --snapshot tasks.yaml --dependency-tree task-1 --max-depth 3

  # Print the subtask tree of an epic
  python main.py --snapshot tasks.yaml --subtask-tree epic-1

  # Render both relations as a Mermaid diagram
  python main.py --snapshot tasks.yaml --visualize mermaid
        """,
    )

    parser.add_argument(
        "-s",
        "--snapshot",
        type=str,
        required=True,
        help="Path to the task snapshot file (YAML or JSON)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: ./taskgraph.yaml if present)",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Audit the snapshot for cycles and dangling references",
    )

    parser.add_argument(
        "--dependency-tree",
        metavar="TASK_ID",
        help="Print the dependency tree of TASK_ID as JSON",
    )

    parser.add_argument(
        "--dependents-tree",
        metavar="TASK_ID",
        help="Print the tree of tasks depending on TASK_ID as JSON",
    )

    parser.add_argument(
        "--subtask-tree",
        metavar="TASK_ID",
        help="Print the subtask tree of TASK_ID as JSON",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Depth bound for tree queries (default: from configuration)",
    )

    parser.add_argument(
        "--visualize",
        choices=["mermaid", "dot"],
        help="Render both relations in the given diagram format",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: from configuration)",
    )

    args = parser.parse_args(argv)

    if args.debug:
        args.log_level = "DEBUG"

    return args


def main() -> None:
    """Main entry point.

    Parses arguments, runs the queries and exits with the resulting code.
    """
    args = parse_args()

    if not Path(args.snapshot).exists():
        sys.stderr.write(f"Snapshot file not found: {args.snapshot}\n")
        sys.exit(1)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
