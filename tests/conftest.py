"""Test fixtures for PM Command Center."""

from collections.abc import Callable
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from pm_command_center.models import RiskLevel, Task, TaskStatus
from pm_command_center.storage.repository import YamlWorkspaceRepository
from pm_command_center.storage.seed import DEFAULT_TASKS
from pm_command_center.task_store import TaskStore


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for tasks with sensible defaults."""

    def factory(
        task_id: str,
        name: str | None = None,
        assignee: str = "Alice PM",
        status: TaskStatus = TaskStatus.TODO,
        risk_level: RiskLevel = RiskLevel.LOW,
    ) -> Task:
        return Task(
            id=task_id,
            name=name or f"Task {task_id}",
            assignee=assignee,
            status=status,
            risk_level=risk_level,
            due_date=date(2023, 10, 20),
            description=f"Description of {task_id}",
        )

    return factory


@pytest.fixture
def seed_tasks() -> list[Task]:
    """The six default workspace tasks (two Done, one High, one Critical)."""
    return list(DEFAULT_TASKS)


@pytest.fixture
def fake_repository() -> Callable[[list[Task]], MagicMock]:
    """Factory for a mocked repository that always succeeds."""

    def factory(tasks: list[Task]) -> MagicMock:
        repository = MagicMock()
        repository.fetch_tasks = AsyncMock(return_value=list(tasks))
        repository.create_task = AsyncMock(side_effect=lambda task: task)
        repository.update_task = AsyncMock(return_value=True)
        repository.bulk_update_tasks = AsyncMock(return_value=True)
        return repository

    return factory


@pytest.fixture
def make_store(
    fake_repository: Callable[[list[Task]], MagicMock],
) -> Callable[[list[Task]], TaskStore]:
    """Factory for a store over a mocked repository.

    The store is not hydrated; tests call ``await store.init()``.
    """

    def factory(tasks: list[Task]) -> TaskStore:
        return TaskStore(fake_repository(tasks))

    return factory


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    """Path of a not yet existing workspace file."""
    return tmp_path / "workspace.yaml"


@pytest.fixture
def yaml_repository(storage_path: Path) -> YamlWorkspaceRepository:
    """YAML repository without simulated latency."""
    return YamlWorkspaceRepository(storage_path, latency_scale=0)
