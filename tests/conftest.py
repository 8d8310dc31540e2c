"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator

import pytest

# Set test environment
os.environ.setdefault("TASKWEAVE_LOG_LEVEL", "DEBUG")


@pytest.fixture
def mock_settings() -> Generator:
    """Clear cached settings around a test that changes the environment."""
    from taskweave.core.config import clear_settings_cache

    # Clear any cached settings
    clear_settings_cache()

    yield

    # Clear again after test
    clear_settings_cache()


@pytest.fixture
def sample_tasks() -> list:
    """Provide the diamond A -> (B, C) -> D."""
    from taskweave.scheduling.models import Task

    return [
        Task(id="A", description="Fetch sources"),
        Task(id="B", description="Build backend", dependencies=["A"]),
        Task(id="C", description="Build frontend", dependencies=["A"]),
        Task(id="D", description="Package release", dependencies=["B", "C"]),
    ]


@pytest.fixture
def registry(sample_tasks: list):
    """Provide a registry loaded with the diamond."""
    from taskweave.scheduling.registry import TaskRegistry

    return TaskRegistry.from_tasks(sample_tasks)


@pytest.fixture
def cyclic_tasks() -> list:
    """Provide A -> B -> C -> A."""
    from taskweave.scheduling.models import Task

    return [
        Task(id="A", description="A", dependencies=["C"]),
        Task(id="B", description="B", dependencies=["A"]),
        Task(id="C", description="C", dependencies=["B"]),
    ]


@pytest.fixture
def recovery_manager():
    """Provide a recovery manager with the default policy and continue strategy."""
    from taskweave.recovery.recovery_manager import RecoveryManager

    return RecoveryManager(strategy="continue")


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
