"""Persistence - optional snapshots of the task list."""

from taskweave.persistence.snapshot import (
    DEFAULT_SNAPSHOT_KEY,
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
    dump_tasks,
    load_registry,
    load_tasks,
    save_registry,
)

__all__ = [
    "DEFAULT_SNAPSHOT_KEY",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "SnapshotStore",
    "dump_tasks",
    "load_registry",
    "load_tasks",
    "save_registry",
]
