"""Dependency resolver - topological order and parallel levels.

Kahn's algorithm over a ``DependencyGraph``: tasks with no declared
dependencies form the first level, and each following level holds the
tasks whose last dependency was emitted in the level before. Tasks that
share a level have no edge between them and may run concurrently.
"""

from collections import deque

from loguru import logger

from taskweave.core.exceptions import CycleError, NotFoundError
from taskweave.scheduling.graph import DependencyGraph
from taskweave.scheduling.models import ExecutionOrder


class DependencyResolver:
    """
    Resolve a dependency graph into an execution order.

    A graph that is not a DAG is a hard failure: ``resolve`` raises
    ``CycleError`` instead of returning a partial order.

    Example:
        >>> resolver = DependencyResolver(graph)
        >>> resolver.get_parallel_levels()
        [['a'], ['b', 'c'], ['d']]
    """

    def __init__(self, graph: DependencyGraph) -> None:
        """
        Initialize the resolver.

        Args:
            graph: Graph to resolve. Read on every call, never mutated.
        """
        self._graph = graph

    def resolve(self) -> ExecutionOrder:
        """
        Perform a topological sort and group tasks into parallel levels.

        Returns:
            ExecutionOrder whose levels concatenate to the flat order.

        Raises:
            NotFoundError: If a dependency refers to an unregistered task.
            CycleError: If the graph contains a cycle.
        """
        nodes = self._graph.get_all_nodes()

        if not nodes:
            return ExecutionOrder()

        missing = self._graph.get_missing_dependencies()
        if missing:
            task_id, unknown = next(iter(missing.items()))
            raise NotFoundError(
                unknown[0],
                f"Task {task_id} depends on unregistered task(s): {', '.join(unknown)}",
            )

        indegree = {task_id: node.indegree for task_id, node in nodes.items()}
        queue: deque[str] = deque(task_id for task_id, degree in indegree.items() if degree == 0)

        order: list[str] = []
        parallel_levels: list[list[str]] = []

        while queue:
            # Everything queued now is independent of everything else queued
            level = list(queue)
            queue.clear()
            parallel_levels.append(level)

            for task_id in level:
                order.append(task_id)
                for dependent_id in nodes[task_id].dependents:
                    indegree[dependent_id] -= 1
                    if indegree[dependent_id] == 0:
                        queue.append(dependent_id)

        if len(order) != len(nodes):
            cycle = self._graph.detect_cycle().cycle
            logger.debug(f"Topological sort stopped after {len(order)}/{len(nodes)} tasks")
            raise CycleError(cycle)

        logger.debug(f"Resolved {len(order)} tasks into {len(parallel_levels)} levels")

        return ExecutionOrder(order=order, parallel_levels=parallel_levels)

    def get_execution_order(self) -> list[str]:
        """Get task IDs in a dependency-respecting order."""
        return self.resolve().order

    def get_parallel_levels(self) -> list[list[str]]:
        """Get batches of task IDs that can execute concurrently."""
        return self.resolve().parallel_levels

    def get_critical_path(self) -> list[str]:
        """
        Find the longest chain of dependencies through the graph.

        Returns:
            Task IDs from the first task of the chain to its last.

        Raises:
            CycleError: If the graph contains a cycle.
        """
        plan = self.resolve()
        nodes = self._graph.get_all_nodes()

        depth: dict[str, int] = {}
        previous: dict[str, str | None] = {}

        for task_id in plan.order:
            best: str | None = None
            for dep_id in nodes[task_id].task.dependency_ids():
                if best is None or depth[dep_id] > depth[best]:
                    best = dep_id
            depth[task_id] = depth[best] + 1 if best is not None else 0
            previous[task_id] = best

        if not depth:
            return []

        current: str | None = max(plan.order, key=lambda t: depth[t])
        path: list[str] = []
        while current is not None:
            path.append(current)
            current = previous[current]

        return list(reversed(path))
