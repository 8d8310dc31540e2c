"""Snapshot stores for checkpointing the task list.

The only contract with a store is "array of task records in, array out":
the whole list is written on every save, without diffing.
"""

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from taskweave.core.config import Settings, get_settings
from taskweave.core.exceptions import InvalidConditionError, SnapshotError
from taskweave.scheduling.models import Task
from taskweave.scheduling.registry import TaskRegistry

DEFAULT_SNAPSHOT_KEY = "subtasks"


@runtime_checkable
class SnapshotStore(Protocol):
    """Key/value state storage."""

    def get_state(self, key: str) -> Any:
        """Return the stored value, or None if the key is unknown."""
        ...

    def set_state(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under a key."""
        ...


class MemorySnapshotStore:
    """In-process store; values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._state: dict[str, Any] = {}

    def get_state(self, key: str) -> Any:
        return copy.deepcopy(self._state.get(key))

    def set_state(self, key: str, value: Any) -> None:
        self._state[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        """Stored keys."""
        return list(self._state)


class FileSnapshotStore:
    """
    Store each key as a JSON document in a directory.

    Writes go through a temporary file and an atomic rename so a crash
    never leaves a half-written snapshot behind.

    Example:
        >>> store = FileSnapshotStore(".taskweave")
        >>> store.set_state("subtasks", [])
        >>> store.get_state("subtasks")
        []
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FileSnapshotStore":
        """Store snapshots under the configured snapshot directory."""
        settings = settings or get_settings()
        return cls(settings.taskweave_snapshot_dir)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise SnapshotError(f"Invalid snapshot key: {key!r}")
        return self.directory / f"{key}.json"

    def get_state(self, key: str) -> Any:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Corrupt snapshot {path}: {e}") from e

    def set_state(self, key: str, value: Any) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Value for {key!r} is not JSON serializable: {e}") from e

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote snapshot {path}")


# =============================================================================
# TASK LIST (DE)SERIALIZATION
# =============================================================================


def dump_tasks(tasks: list[Task]) -> list[dict[str, Any]]:
    """
    Convert tasks to JSON-compatible records.

    Raises:
        SnapshotError: If a task uses a predicate condition or carries a
            result that cannot be represented as JSON.
    """
    records: list[dict[str, Any]] = []
    for task in tasks:
        if task.has_predicate_conditions():
            raise SnapshotError(
                f"Task {task.id} has an output-based condition, which cannot be snapshotted"
            )
        try:
            records.append(task.model_dump(mode="json"))
        except PydanticSerializationError as e:
            raise SnapshotError(f"Task {task.id} cannot be serialized: {e}") from e
    return records


def load_tasks(records: list[dict[str, Any]]) -> list[Task]:
    """
    Rebuild tasks from records written by ``dump_tasks``.

    Raises:
        SnapshotError: If the records are not a list of valid tasks.
    """
    if not isinstance(records, list):
        raise SnapshotError(f"Snapshot must be a list of tasks, got {type(records).__name__}")
    try:
        return [Task.model_validate(record) for record in records]
    except (ValidationError, InvalidConditionError) as e:
        raise SnapshotError(f"Invalid task record in snapshot: {e}") from e


def save_registry(
    registry: TaskRegistry,
    store: SnapshotStore,
    key: str = DEFAULT_SNAPSHOT_KEY,
) -> None:
    """Write the registry's full task list to a store."""
    store.set_state(key, dump_tasks(registry.get_all_tasks()))
    logger.debug(f"Saved {len(registry)} tasks under {key!r}")


def load_registry(store: SnapshotStore, key: str = DEFAULT_SNAPSHOT_KEY) -> TaskRegistry:
    """
    Rebuild a registry from a store.

    Statuses, results and timestamps are restored as saved. A missing key
    yields an empty registry.
    """
    records = store.get_state(key)
    if records is None:
        return TaskRegistry()
    return TaskRegistry.from_tasks(load_tasks(records))
