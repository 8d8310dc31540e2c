"""Best-effort level layout for drawing a task graph.

This is a rendering helper, not a scheduling query: where
``TaskRegistry.get_parallel_levels`` raises on a broken graph, this
layout degrades and puts every task it could not place into one final
level, so a dashboard can still show something.
"""

from taskweave.scheduling.models import Task


def display_levels(tasks: list[Task]) -> list[list[Task]]:
    """
    Group tasks into display levels.

    Dependencies on unknown ids are ignored. Tasks caught in a cycle (or
    downstream of one) end up together in the last level.

    Args:
        tasks: Tasks in registration order.

    Returns:
        Levels of tasks; every task appears exactly once.
    """
    by_id = {task.id: task for task in tasks}
    remaining = {
        task.id: sum(1 for dep_id in task.dependency_ids() if dep_id in by_id)
        for task in tasks
    }
    dependents: dict[str, list[str]] = {task.id: [] for task in tasks}
    for task in tasks:
        for dep_id in task.dependency_ids():
            if dep_id in dependents:
                dependents[dep_id].append(task.id)

    levels: list[list[Task]] = []
    while remaining:
        level_ids = [task_id for task_id, degree in remaining.items() if degree == 0]

        if not level_ids:
            levels.append([by_id[task_id] for task_id in remaining])
            break

        levels.append([by_id[task_id] for task_id in level_ids])
        for task_id in level_ids:
            del remaining[task_id]
            for dependent_id in dependents[task_id]:
                if dependent_id in remaining:
                    remaining[dependent_id] -= 1

    return levels


def has_degraded_level(
    tasks: list[Task],
    levels: list[list[Task]] | None = None,
) -> bool:
    """
    Whether ``display_levels`` had to lump unplaceable tasks together.

    Args:
        tasks: Tasks in registration order.
        levels: Layout already computed for ``tasks``, to avoid redoing it.
    """
    if levels is None:
        levels = display_levels(tasks)
    if not levels:
        return False
    placed = {task.id for task in levels[-1]}
    return any(
        dep_id in placed
        for task in levels[-1]
        for dep_id in task.dependency_ids()
    )
