"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from taskweave import __version__
from taskweave.cli.main import app

pytestmark = pytest.mark.integration

runner = CliRunner()


def write_tasks(path: Path, tasks: list[dict]) -> Path:
    path.write_text(json.dumps(tasks), encoding="utf-8")
    return path


@pytest.fixture
def diamond_file(tmp_path: Path) -> Path:
    return write_tasks(
        tmp_path / "tasks.json",
        [
            {"id": "A", "description": "Fetch", "status": "completed"},
            {"id": "B", "description": "Backend", "dependencies": ["A"]},
            {"id": "C", "description": "Frontend", "dependencies": ["A"], "status": "failed"},
            {
                "id": "D",
                "description": "Release",
                "dependencies": ["B", {"task_id": "C", "condition": "any"}],
            },
        ],
    )


@pytest.fixture
def cycle_file(tmp_path: Path) -> Path:
    return write_tasks(
        tmp_path / "cycle.json",
        [
            {"id": "A", "dependencies": ["C"]},
            {"id": "B", "dependencies": ["A"]},
            {"id": "C", "dependencies": ["B"]},
        ],
    )


class TestCLI:
    """Tests for CLI commands."""

    def test_version(self) -> None:
        """--version prints the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_plan(self, diamond_file: Path) -> None:
        """plan lists every task and the critical path."""
        result = runner.invoke(app, ["plan", str(diamond_file)])

        assert result.exit_code == 0
        assert "Execution Plan" in result.stdout
        assert "4 tasks in 3 levels" in result.stdout

    def test_plan_cycle(self, cycle_file: Path) -> None:
        """plan refuses cyclic graphs."""
        result = runner.invoke(app, ["plan", str(cycle_file)])

        assert result.exit_code == 1
        assert "Cannot plan" in result.stdout

    def test_ready(self, diamond_file: Path) -> None:
        """ready lists dispatchable tasks and blocked ones with reasons."""
        result = runner.invoke(app, ["ready", str(diamond_file)])

        assert result.exit_code == 0
        assert "Ready" in result.stdout
        assert "B" in result.stdout
        assert "Waiting for task B to complete" in result.stdout

    def test_status_json(self, diamond_file: Path) -> None:
        """status --format json prints the progress state."""
        result = runner.invoke(app, ["status", str(diamond_file), "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total_subtasks"] == 4
        assert data["completed_subtasks"] == 1
        assert data["failed_subtasks"] == 1
        assert data["progress_percentage"] == 25

    def test_status_inline(self, diamond_file: Path) -> None:
        """status --format inline prints a progress bar."""
        result = runner.invoke(app, ["status", str(diamond_file), "-f", "inline"])

        assert result.exit_code == 0
        assert "25% (1/4)" in result.stdout

    def test_status_progress(self, diamond_file: Path) -> None:
        """status --format progress prints the wide bar and failure count."""
        result = runner.invoke(app, ["status", str(diamond_file), "--format", "progress"])

        assert result.exit_code == 0
        assert "] 25%" in result.stdout
        assert "Total: 4 | Done: 1 | Active: 0 | Waiting: 2" in result.stdout
        assert "1 task(s) failed" in result.stdout

    def test_status_table(self, diamond_file: Path) -> None:
        """The default format is a table with a summary."""
        result = runner.invoke(app, ["status", str(diamond_file)])

        assert result.exit_code == 0
        assert "Task Status" in result.stdout
        assert "Completed: 1/4 (25%)" in result.stdout

    def test_status_unknown_format(self, diamond_file: Path) -> None:
        """Unknown formats are a usage error."""
        result = runner.invoke(app, ["status", str(diamond_file), "-f", "xml"])

        assert result.exit_code == 2

    def test_check_ok(self, diamond_file: Path) -> None:
        """check passes on a valid graph."""
        result = runner.invoke(app, ["check", str(diamond_file)])

        assert result.exit_code == 0
        assert "OK - 4 tasks, no cycles" in result.stdout

    def test_check_cycle(self, cycle_file: Path) -> None:
        """check reports the cycle."""
        result = runner.invoke(app, ["check", str(cycle_file)])

        assert result.exit_code == 1
        assert "Cycle detected" in result.stdout

    def test_check_missing_dependency(self, tmp_path: Path) -> None:
        """check reports unknown dependencies."""
        path = write_tasks(tmp_path / "t.json", [{"id": "a", "dependencies": ["ghost"]}])

        result = runner.invoke(app, ["check", str(path)])

        assert result.exit_code == 1
        assert "ghost" in result.stdout

    def test_tasks_object_form(self, tmp_path: Path) -> None:
        """Task files may wrap the list in a "tasks" key."""
        path = tmp_path / "t.json"
        path.write_text(json.dumps({"tasks": [{"id": "a"}, {"id": "b"}]}), encoding="utf-8")

        result = runner.invoke(app, ["check", str(path)])

        assert result.exit_code == 0
        assert "2 tasks" in result.stdout

    @pytest.mark.parametrize(
        "content",
        ["{oops", json.dumps({"tasks": "nope"}), json.dumps([{"id": "a"}, {"id": "a"}])],
    )
    def test_bad_task_files(self, tmp_path: Path, content: str) -> None:
        """Unreadable task files exit with code 2."""
        path = tmp_path / "bad.json"
        path.write_text(content, encoding="utf-8")

        result = runner.invoke(app, ["plan", str(path)])

        assert result.exit_code == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing task file exits with code 2."""
        result = runner.invoke(app, ["ready", str(tmp_path / "nope.json")])

        assert result.exit_code == 2
        assert "not found" in result.stdout

    def test_backoff(self) -> None:
        """backoff prints the capped schedule."""
        result = runner.invoke(app, ["backoff", "-r", "5", "--max", "5000"])

        assert result.exit_code == 0
        assert "exponential" in result.stdout
        for delay in ("1000", "2000", "4000", "5000"):
            assert delay in result.stdout

    def test_backoff_linear(self) -> None:
        """Linear schedules grow by the initial delay."""
        result = runner.invoke(
            app, ["backoff", "--strategy", "linear", "--initial", "300", "-r", "3"]
        )

        assert result.exit_code == 0
        for delay in ("300", "600", "900"):
            assert delay in result.stdout

    def test_backoff_invalid_policy(self) -> None:
        """An initial delay above the cap is rejected."""
        result = runner.invoke(app, ["backoff", "--initial", "9000", "--max", "1000"])

        assert result.exit_code == 2

    def test_graph(self, cycle_file: Path) -> None:
        """graph still draws cyclic graphs."""
        result = runner.invoke(app, ["graph", str(cycle_file)])

        assert result.exit_code == 0
        assert "Dependency Graph" in result.stdout
        assert "Level 0" in result.stdout
        assert "dependency cycle" in result.stdout

    def test_graph_empty(self, tmp_path: Path) -> None:
        """An empty task list has nothing to draw."""
        path = write_tasks(tmp_path / "empty.json", [])

        result = runner.invoke(app, ["graph", str(path)])

        assert result.exit_code == 0
        assert "No tasks to display" in result.stdout
