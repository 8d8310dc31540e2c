"""Dependency graph - task records plus indegree/dependents adjacency."""

from loguru import logger

from taskweave.core.exceptions import DuplicateTaskError, NotFoundError
from taskweave.scheduling.models import (
    TERMINAL_STATUSES,
    CycleResult,
    DependencyNode,
    Task,
    TaskStatus,
    utc_now,
)


class DependencyGraph:
    """
    Directed graph of tasks and the tasks they depend on.

    Each node keeps its declared dependency count (``indegree``, fixed at
    insertion) and the ids of the tasks depending on it (``dependents``).
    Back-links are made in both directions on insertion, so tasks may be
    added before the tasks they depend on.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_task(Task(id="a"))
        >>> graph.add_task(Task(id="b", dependencies=["a"]))
        >>> graph.get_dependents("a")
        ['b']
    """

    def __init__(self) -> None:
        self._nodes: dict[str, DependencyNode] = {}
        # Unregistered dependency id -> ids of the tasks waiting on it
        self._pending_dependents: dict[str, list[str]] = {}

    def add_task(self, task: Task) -> None:
        """
        Add a task to the graph.

        Args:
            task: Task to add.

        Raises:
            DuplicateTaskError: If a task with the same id exists.
        """
        if task.id in self._nodes:
            raise DuplicateTaskError(task.id)

        dependency_ids = task.dependency_ids()
        node = DependencyNode(task=task, indegree=len(dependency_ids))

        # Tasks registered earlier that already wait on this one
        node.dependents.extend(self._pending_dependents.pop(task.id, []))

        self._nodes[task.id] = node

        for dep_id in dependency_ids:
            dep_node = self._nodes.get(dep_id)
            if dep_node is None:
                self._pending_dependents.setdefault(dep_id, []).append(task.id)
            else:
                dep_node.dependents.append(task.id)

        logger.debug(f"Added task {task.id} with {node.indegree} dependencies")

    def get_task(self, task_id: str) -> Task | None:
        """Get a task by ID, or None if unknown."""
        node = self._nodes.get(task_id)
        return node.task if node else None

    def get_node(self, task_id: str) -> DependencyNode | None:
        """Get the graph node for a task, or None if unknown."""
        return self._nodes.get(task_id)

    def update_status(self, task_id: str, status: TaskStatus) -> None:
        """
        Update a task's status and stamp lifecycle timestamps.

        ``started_at`` is set on the first move into IN_PROGRESS;
        ``completed_at`` on every move into a terminal status.

        Raises:
            NotFoundError: If the task is unknown.
        """
        node = self._nodes.get(task_id)
        if node is None:
            raise NotFoundError(task_id)

        task = node.task
        task.status = status

        if status == TaskStatus.IN_PROGRESS and task.started_at is None:
            task.started_at = utc_now()
        elif status in TERMINAL_STATUSES:
            task.completed_at = utc_now()

    def detect_cycle(self) -> CycleResult:
        """
        Detect a cycle using depth-first search.

        Walks from every unvisited task along its dependency edges, keeping
        the current path; an edge back into the path closes a cycle.
        Unknown dependency ids are ignored.

        Returns:
            CycleResult with the cyclic subsequence of the path if found.

        Example:
            >>> graph.detect_cycle()
            CycleResult(has_cycle=True, cycle=['a', 'b', 'c'])
        """
        visited: set[str] = set()
        on_path: set[str] = set()

        for root in self._nodes:
            if root in visited:
                continue

            path: list[str] = [root]
            stack = [iter(self._nodes[root].task.dependency_ids())]
            visited.add(root)
            on_path.add(root)

            while stack:
                dep_id = next(stack[-1], None)

                if dep_id is None:
                    on_path.discard(path.pop())
                    stack.pop()
                    continue

                if dep_id not in self._nodes:
                    continue

                if dep_id in on_path:
                    cycle = path[path.index(dep_id):]
                    logger.debug(f"Cycle detected: {' -> '.join(cycle)}")
                    return CycleResult(has_cycle=True, cycle=cycle)

                if dep_id not in visited:
                    visited.add(dep_id)
                    on_path.add(dep_id)
                    path.append(dep_id)
                    stack.append(iter(self._nodes[dep_id].task.dependency_ids()))

        return CycleResult(has_cycle=False)

    def get_missing_dependencies(self) -> dict[str, list[str]]:
        """Map task id -> dependency ids that are not registered."""
        missing: dict[str, list[str]] = {}
        for task_id, node in self._nodes.items():
            unknown = [d for d in node.task.dependency_ids() if d not in self._nodes]
            if unknown:
                missing[task_id] = unknown
        return missing

    def get_dependents(self, task_id: str) -> list[str]:
        """Get IDs of tasks that depend on the given task."""
        node = self._nodes.get(task_id)
        return list(node.dependents) if node else []

    def get_all_nodes(self) -> dict[str, DependencyNode]:
        """Get a shallow copy of the node mapping."""
        return dict(self._nodes)

    def get_all_tasks(self) -> list[Task]:
        """Get all tasks in insertion order."""
        return [node.task for node in self._nodes.values()]

    def size(self) -> int:
        """Get total number of tasks."""
        return len(self._nodes)

    def is_empty(self) -> bool:
        """Check if the graph has no tasks."""
        return not self._nodes

    def clear(self) -> None:
        """Remove all tasks."""
        self._nodes.clear()
        self._pending_dependents.clear()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
