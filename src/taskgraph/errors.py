"""Typed errors raised by the task graph managers.

Every error here is a deterministic validation failure detected before any
mutation reaches the store. Each class carries the HTTP status a
presentation layer is expected to answer with, see ``status_for_error``.
"""

HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
DUPLICATE_EDGE_STATUSES = frozenset({HTTP_BAD_REQUEST, HTTP_CONFLICT})


class TaskGraphError(Exception):
    """Base class for all task graph integrity errors."""

    status_code: int = HTTP_BAD_REQUEST

    def __init__(self, message: str):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the failure
        """
        super().__init__(message)
        self.message = message


class TaskNotFoundError(TaskGraphError):
    """Raised when a referenced task id does not exist."""

    status_code = HTTP_NOT_FOUND

    def __init__(self, task_id: str):
        super().__init__(f"Task with id {task_id} not found")
        self.task_id = task_id


class SelfReferenceError(TaskGraphError):
    """Raised when a task id is used against itself."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} cannot reference itself")
        self.task_id = task_id


class EdgeAlreadyExistsError(TaskGraphError):
    """Raised when the ordered dependency edge is already present."""

    status_code = HTTP_CONFLICT

    def __init__(self, dependent_id: str, dependency_id: str):
        super().__init__(f"Task {dependent_id} already depends on task {dependency_id}")
        self.dependent_id = dependent_id
        self.dependency_id = dependency_id


class EdgeNotFoundError(TaskGraphError):
    """Raised when removing a dependency edge that does not exist."""

    def __init__(self, dependent_id: str, dependency_id: str):
        super().__init__(f"Task {dependent_id} does not depend on task {dependency_id}")
        self.dependent_id = dependent_id
        self.dependency_id = dependency_id


class SubtaskNotFoundError(TaskGraphError):
    """Raised when a task is not a direct subtask of the given parent."""

    def __init__(self, child_id: str, parent_id: str):
        super().__init__(f"Task {child_id} is not a subtask of task {parent_id}")
        self.child_id = child_id
        self.parent_id = parent_id


class SubtaskAlreadyParentedError(TaskGraphError):
    """Raised in strict hierarchy mode when a child already has another parent.

    Only raised when re-parenting through ``add_subtask`` is disabled; the
    move must then be requested explicitly with ``move_subtask``.
    """

    status_code = HTTP_CONFLICT

    def __init__(self, child_id: str, current_parent_id: str):
        super().__init__(
            f"Task {child_id} is already a subtask of task {current_parent_id}; "
            "use move_subtask to re-parent it",
        )
        self.child_id = child_id
        self.current_parent_id = current_parent_id


class CycleDetectedError(TaskGraphError):
    """Raised when a mutation would close a cycle in either relation.

    Attributes:
        path: The existing path that the new edge would close, if known
    """

    def __init__(self, message: str, path: list[str] | None = None):
        super().__init__(message)
        self.path = list(path) if path else []


def status_for_error(error: Exception, duplicate_edge_status: int = HTTP_CONFLICT) -> int:
    """Map an error to the HTTP status code of the public contract.

    Args:
        error: The exception raised by a manager
        duplicate_edge_status: Status used for duplicate-relation errors
            (409 or 400, depending on deployment convention)

    Returns:
        HTTP status code; 500 for anything that is not a TaskGraphError

    Raises:
        ValueError: If duplicate_edge_status is neither 400 nor 409
    """
    if duplicate_edge_status not in DUPLICATE_EDGE_STATUSES:
        msg = f"duplicate_edge_status must be 400 or 409, got {duplicate_edge_status}"
        raise ValueError(msg)

    if isinstance(error, (EdgeAlreadyExistsError, SubtaskAlreadyParentedError)):
        return duplicate_edge_status
    if isinstance(error, TaskGraphError):
        return error.status_code
    return 500


__all__ = [
    "CycleDetectedError",
    "EdgeAlreadyExistsError",
    "EdgeNotFoundError",
    "SelfReferenceError",
    "SubtaskAlreadyParentedError",
    "SubtaskNotFoundError",
    "TaskGraphError",
    "TaskNotFoundError",
    "status_for_error",
]
