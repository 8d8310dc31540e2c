"""Exception hierarchy for Taskweave.

Every scheduler operation fails fast with one of these typed errors
instead of logging and continuing.
"""


class TaskweaveError(Exception):
    """Base exception for Taskweave errors."""

    pass


class DuplicateTaskError(TaskweaveError):
    """A task with the same id is already registered."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} already exists")
        self.task_id = task_id


class NotFoundError(TaskweaveError, KeyError):
    """Operation on a task id that is not registered."""

    def __init__(self, task_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Task with id {task_id} not found")
        self.task_id = task_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class CycleError(TaskweaveError):
    """The dependency graph is not a DAG."""

    def __init__(self, cycle: list[str] | None = None) -> None:
        self.cycle = list(cycle) if cycle else []
        if self.cycle:
            path = " -> ".join([*self.cycle, self.cycle[0]])
            message = f"Graph contains a cycle and cannot be topologically sorted: {path}"
        else:
            message = "Graph contains a cycle and cannot be topologically sorted"
        super().__init__(message)


class InvalidConditionError(TaskweaveError):
    """A dependency condition is neither a known status condition nor a callable."""

    pass


class InvalidStatusError(TaskweaveError, ValueError):
    """Status value that is not a known task status."""

    pass


class InvalidProgressError(TaskweaveError, ValueError):
    """Progress outside the 0-100 range."""

    pass


class SnapshotError(TaskweaveError):
    """Task list could not be written to or read from a snapshot store."""

    pass
