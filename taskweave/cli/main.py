"""Main CLI entry point using Typer."""

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from taskweave import __version__
from taskweave.core.config import get_settings
from taskweave.core.exceptions import TaskweaveError
from taskweave.core.logging import configure_logging
from taskweave.progress.formatters import build_progress_state, create_formatter
from taskweave.progress.layout import display_levels, has_degraded_level
from taskweave.recovery.models import BackoffType, RetryPolicy
from taskweave.recovery.retry_policy import RetryPolicyManager
from taskweave.scheduling.models import Task, TaskStatus
from taskweave.scheduling.registry import TaskRegistry

app = typer.Typer(
    name="taskweave",
    help="Taskweave - dependency-driven task scheduling with failure recovery",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

STATUS_STYLES = {
    TaskStatus.PENDING: "dim",
    TaskStatus.WAITING: "yellow",
    TaskStatus.READY: "cyan",
    TaskStatus.IN_PROGRESS: "blue",
    TaskStatus.COMPLETED: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.SKIPPED: "magenta",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Taskweave[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Log scheduling decisions to stderr.",
    ),
) -> None:
    """
    Taskweave - work out what can run, what must wait and what is stuck.

    Task files are JSON: a list of task records, or an object with a
    "tasks" list.
    """
    if debug:
        settings = get_settings().model_copy(update={"taskweave_debug": True})
        configure_logging(settings)


def load_task_file(path: Path) -> TaskRegistry:
    """Load a task file into a registry, exiting with a message on error."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]Task file not found: {path}[/red]")
        raise typer.Exit(code=2)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(code=2)

    records = data.get("tasks", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        console.print(f"[red]Task file {path} must contain a list of tasks[/red]")
        raise typer.Exit(code=2)

    try:
        return TaskRegistry.from_tasks(Task.model_validate(record) for record in records)
    except (ValidationError, TaskweaveError) as e:
        console.print(f"[red]Invalid task file {path}:[/red] {e}")
        raise typer.Exit(code=2)


def _status_text(status: TaskStatus) -> str:
    style = STATUS_STYLES[status]
    return f"[{style}]{status.value}[/{style}]"


@app.command()
def plan(
    task_file: Path = typer.Argument(..., help="JSON task file"),
) -> None:
    """
    Show the execution plan: parallel levels in dependency order.

    Example:
        taskweave plan tasks.json
    """
    registry = load_task_file(task_file)

    try:
        execution_plan = registry.get_execution_plan()
        critical_path = registry.get_critical_path()
    except TaskweaveError as e:
        console.print(f"[bold red]Cannot plan:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Execution Plan")
    table.add_column("Level", style="cyan")
    table.add_column("Task", style="bold")
    table.add_column("Description")
    table.add_column("Dependencies")

    for level_number, level in enumerate(execution_plan.parallel_levels):
        for task_id in level:
            task = registry.get_task(task_id)
            deps = ", ".join(task.dependency_ids()) or "-"
            table.add_row(str(level_number), task_id, task.description, deps)

    console.print(table)
    console.print(
        f"[dim]{len(execution_plan.order)} tasks in {execution_plan.total_levels} levels; "
        f"critical path: {' -> '.join(critical_path)}[/dim]"
    )


@app.command()
def ready(
    task_file: Path = typer.Argument(..., help="JSON task file"),
) -> None:
    """
    List tasks that can be dispatched now, and why the others wait.
    """
    registry = load_task_file(task_file)

    ready_tasks = registry.get_ready_subtasks()
    if ready_tasks:
        console.print("[bold green]Ready[/bold green]")
        for task in ready_tasks:
            console.print(f"  {task.id}  [dim]{task.description}[/dim]")
    else:
        console.print("[yellow]No task is ready[/yellow]")

    blocked = registry.get_blocked_subtasks()
    if blocked:
        console.print("\n[bold yellow]Blocked[/bold yellow]")
        for task_id, reason in blocked.items():
            console.print(f"  {task_id}: {reason}")


@app.command()
def status(
    task_file: Path = typer.Argument(..., help="JSON task file"),
    output_format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format: table, inline, progress, json",
    ),
) -> None:
    """
    Show per-task status and the execution summary.
    """
    registry = load_task_file(task_file)

    if output_format in ("inline", "progress", "json"):
        formatter = create_formatter(output_format)
        # Plain print keeps JSON output free of rich markup
        print(formatter.format(build_progress_state(registry)))
        return

    if output_format != "table":
        console.print(f"[red]Unknown format: {output_format}[/red]")
        raise typer.Exit(code=2)

    table = Table(title="Task Status")
    table.add_column("Task", style="bold")
    table.add_column("Status")
    table.add_column("Assigned To")
    table.add_column("Progress")

    for item in registry.get_all_subtask_statuses():
        table.add_row(
            item.id,
            _status_text(item.status),
            item.assigned_to or "-",
            f"{item.progress}%" if item.progress is not None else "-",
        )

    console.print(table)

    summary = registry.get_execution_summary()
    console.print(
        Panel(
            f"Completed: {summary.completed}/{summary.total} ({summary.percentage}%)\n"
            f"Failed: {summary.failed}  In progress: {summary.in_progress}  "
            f"Waiting: {summary.waiting}  Pending: {summary.pending}",
            title="[bold blue]Summary[/bold blue]",
            border_style="blue",
        )
    )


@app.command()
def check(
    task_file: Path = typer.Argument(..., help="JSON task file"),
) -> None:
    """
    Check the task graph for cycles and unknown dependencies.

    Exits with code 1 if the graph cannot be scheduled.
    """
    registry = load_task_file(task_file)

    result = registry.detect_cycle()
    if result.has_cycle and result.cycle:
        path = " -> ".join([*result.cycle, result.cycle[0]])
        console.print(f"[bold red]Cycle detected:[/bold red] {path}")
        raise typer.Exit(code=1)

    missing = registry.get_graph().get_missing_dependencies()
    if missing:
        for task_id, unknown in missing.items():
            console.print(f"[red]{task_id}[/red] depends on unknown task(s): {', '.join(unknown)}")
        raise typer.Exit(code=1)

    console.print(f"[green]OK[/green] - {len(registry)} tasks, no cycles")


@app.command()
def backoff(
    max_retries: int = typer.Option(3, "--max-retries", "-r", help="Maximum retries"),
    initial_delay: int = typer.Option(1000, "--initial", "-i", help="Initial delay (ms)"),
    max_delay: int = typer.Option(60000, "--max", "-m", help="Maximum delay (ms)"),
    strategy: BackoffType = typer.Option(
        BackoffType.EXPONENTIAL,
        "--strategy",
        "-s",
        help="Backoff growth",
    ),
) -> None:
    """
    Print the retry delay schedule for a policy.

    Example:
        taskweave backoff --strategy linear --max 5000
    """
    try:
        policy = RetryPolicy(
            max_retries=max_retries,
            initial_delay=initial_delay,
            max_delay=max_delay,
            backoff=strategy,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid policy:[/red] {e}")
        raise typer.Exit(code=2)

    manager = RetryPolicyManager(policy)

    table = Table(title=f"Retry Schedule ({policy.backoff.value})")
    table.add_column("Retry", style="cyan")
    table.add_column("Delay (ms)", justify="right")

    for retry_count in range(policy.max_retries):
        table.add_row(str(retry_count + 1), str(manager.calculate_delay(retry_count)))

    console.print(table)


@app.command()
def graph(
    task_file: Path = typer.Argument(..., help="JSON task file"),
) -> None:
    """
    Draw the task graph level by level.

    Unlike "plan", this still draws a graph with a cycle; tasks that
    cannot be placed are shown together in a final level.
    """
    registry = load_task_file(task_file)
    tasks = registry.get_all_tasks()

    if not tasks:
        console.print("[dim]No tasks to display[/dim]")
        return

    tree = Tree("[bold]Dependency Graph[/bold]")
    levels = display_levels(tasks)
    for level_number, level in enumerate(levels):
        branch = tree.add(f"[cyan]Level {level_number}[/cyan]")
        for task in level:
            deps = ", ".join(task.dependency_ids())
            label = f"{task.id} {_status_text(task.status)}"
            if deps:
                label += f" [dim]<- {deps}[/dim]"
            branch.add(label)

    console.print(tree)
    if has_degraded_level(tasks, levels):
        console.print("[yellow]The last level holds tasks caught in a dependency cycle[/yellow]")


if __name__ == "__main__":
    app()
