"""Store-wide integrity audit with cycle path reporting.

The managers keep both relations acyclic at write time, but data can still
arrive from elsewhere (snapshot files, stores without a serialization
point, manual repairs). GraphValidator inspects a whole store and reports
every cycle, self-reference and dangling reference it finds, and renders
both relations as Mermaid or Graphviz diagrams.
"""

from dataclasses import dataclass, field

import structlog

from taskgraph.graph.cycle_detector import find_cycles
from taskgraph.store.base import TaskStore, dependency_adjacency, parent_adjacency

logger = structlog.get_logger(__name__)

SELF_LOOP_LENGTH = 2


@dataclass
class ValidationReport:
    """Report containing integrity results for a task store.

    Attributes:
        is_valid: Whether the store passed all checks
        errors: List of error messages (integrity violations)
        warnings: List of warning messages (suspicious but legal data)
        cycles: Dependency cycles, each a closed list of task ids
        hierarchy_cycles: Parent-pointer cycles, each a closed list of task ids
        missing_refs: Task ids referenced by an edge or parent pointer but not stored
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    hierarchy_cycles: list[list[str]] = field(default_factory=list)
    missing_refs: set[str] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = [
            f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}",
            f"Errors: {len(self.errors)}",
            f"Warnings: {len(self.warnings)}",
            f"Dependency Cycles: {len(self.cycles)}",
            f"Hierarchy Cycles: {len(self.hierarchy_cycles)}",
            f"Missing References: {len(self.missing_refs)}",
        ]

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nDependency Cycles:")
            lines.extend(f"  {i}. {' -> '.join(cycle)}" for i, cycle in enumerate(self.cycles, 1))

        if self.hierarchy_cycles:
            lines.append("\nHierarchy Cycles:")
            lines.extend(
                f"  {i}. {' -> '.join(cycle)}" for i, cycle in enumerate(self.hierarchy_cycles, 1)
            )

        if self.missing_refs:
            lines.append(f"\nMissing References: {', '.join(sorted(self.missing_refs))}")

        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "cycles": [list(cycle) for cycle in self.cycles],
            "hierarchy_cycles": [list(cycle) for cycle in self.hierarchy_cycles],
            "missing_refs": sorted(self.missing_refs),
        }


class GraphValidator:
    """Validator for both task relations with detailed error reporting.

    Checks performed:
    - Dependency cycles with complete path information
    - Hierarchy (parent pointer) cycles, including self-parenting
    - Dependency edges and parent pointers naming unknown tasks
    - Tasks that both depend on and contain each other (warning)
    """

    def validate(self, store: TaskStore) -> ValidationReport:
        """Audit a store and generate a detailed report.

        Args:
            store: The store to audit

        Returns:
            ValidationReport containing all findings
        """
        task_ids = {task.id for task in store.list_tasks()}
        dependencies = dependency_adjacency(store)
        parents = parent_adjacency(store)

        logger.info(
            "starting_graph_validation",
            task_count=len(task_ids),
            dependency_count=sum(len(deps) for deps in dependencies.values()),
            parent_link_count=len(parents),
        )

        report = ValidationReport()

        for cycle in find_cycles(dependencies):
            report.cycles.append(cycle)
            if len(cycle) == SELF_LOOP_LENGTH:
                report.add_error(f"Task {cycle[0]} depends on itself")
            else:
                report.add_error(f"Dependency cycle detected: {' -> '.join(cycle)}")

        for cycle in find_cycles(parents):
            report.hierarchy_cycles.append(cycle)
            if len(cycle) == SELF_LOOP_LENGTH:
                report.add_error(f"Task {cycle[0]} is its own parent")
            else:
                report.add_error(f"Hierarchy cycle detected: {' -> '.join(cycle)}")

        missing = self._check_missing_refs(task_ids, dependencies, parents)
        if missing:
            report.missing_refs = missing
            report.add_error(f"References to unknown tasks: {', '.join(sorted(missing))}")

        self._check_mixed_relations(report, dependencies, parents)

        logger.info(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def _check_missing_refs(
        self,
        task_ids: set[str],
        dependencies: dict[str, set[str]],
        parents: dict[str, set[str]],
    ) -> set[str]:
        """Collect ids referenced by either relation that are not stored."""
        referenced: set[str] = set(dependencies)
        for deps in dependencies.values():
            referenced.update(deps)
        for parent_ids in parents.values():
            referenced.update(parent_ids)

        missing = referenced - task_ids
        if missing:
            logger.debug("missing_references_found", count=len(missing), tasks=sorted(missing))
        return missing

    def _check_mixed_relations(
        self,
        report: ValidationReport,
        dependencies: dict[str, set[str]],
        parents: dict[str, set[str]],
    ) -> None:
        """Warn when a parent depends on its own direct child.

        This is legal (the relations are independent) but usually a modelling
        mistake: the parent cannot finish before the child anyway.
        """
        for child, parent_ids in sorted(parents.items()):
            for parent in parent_ids:
                if child in dependencies.get(parent, set()):
                    report.add_warning(f"Task {parent} depends on its own subtask {child}")

    def generate_visualization(self, store: TaskStore, output_format: str = "mermaid") -> str:
        """Generate a visual representation of both relations.

        Dependency edges are drawn solid from dependency to dependent;
        hierarchy links are drawn dashed from parent to child.

        Args:
            store: The store to visualize
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        tasks = {task.id: task.title for task in store.list_tasks()}
        dependencies = dependency_adjacency(store)
        parents = store.parent_links()

        if output_format == "mermaid":
            return self._generate_mermaid(tasks, dependencies, parents)
        if output_format == "dot":
            return self._generate_graphviz(tasks, dependencies, parents)
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _generate_mermaid(
        self,
        tasks: dict[str, str],
        dependencies: dict[str, set[str]],
        parents: dict[str, str],
    ) -> str:
        lines = ["graph TD"]

        if not tasks:
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        # Task ids are arbitrary strings, so nodes get positional ids and the
        # task title (or the bare id for a dangling reference) as label
        referenced = set(tasks) | set(dependencies) | set(parents) | set(parents.values())
        for deps in dependencies.values():
            referenced.update(deps)
        node_ids = {task_id: f"n{index}" for index, task_id in enumerate(sorted(referenced))}

        for task_id, node_id in node_ids.items():
            label = tasks.get(task_id, task_id).replace('"', "'")
            lines.append(f'    {node_id}["{label}"]')

        for task_id, deps in sorted(dependencies.items()):
            lines.extend(f"    {node_ids[dep]} --> {node_ids[task_id]}" for dep in sorted(deps))

        for child, parent in sorted(parents.items()):
            lines.append(f"    {node_ids[parent]} -.-> {node_ids[child]}")

        return "\n".join(lines)

    def _generate_graphviz(
        self,
        tasks: dict[str, str],
        dependencies: dict[str, set[str]],
        parents: dict[str, str],
    ) -> str:
        def escape_dot_string(s: str) -> str:
            """Escape double quotes for DOT format."""
            return s.replace('"', '\\"')

        lines = ["digraph TaskGraph {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box, style=rounded];")

        if not tasks:
            lines.append('    Empty [label="Empty Graph"];')
        else:
            lines.extend(
                f'    "{escape_dot_string(task_id)}" [label="{escape_dot_string(tasks[task_id])}"];'
                for task_id in sorted(tasks)
            )

            for task_id, deps in sorted(dependencies.items()):
                lines.extend(
                    f'    "{escape_dot_string(dep)}" -> "{escape_dot_string(task_id)}";'
                    for dep in sorted(deps)
                )

            lines.extend(
                f'    "{escape_dot_string(parent)}" -> "{escape_dot_string(child)}" [style=dashed];'
                for child, parent in sorted(parents.items())
            )

        lines.append("}")
        return "\n".join(lines)
