"""Pytest configuration"""
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from trainsync.models.task import ServerHealth, TaskListResponse, TrainingTask
from trainsync.services.task_store import TaskStore

# Make scripts/ importable for the mock training server
scripts_path = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_path))


@pytest.fixture
def make_task():
    """Build a TrainingTask from keyword fields"""
    def _make(task_id: str = "t1", status: str = "completed", **fields) -> TrainingTask:
        return TrainingTask(task_id=task_id, status=status, **fields)
    return _make


@pytest.fixture
def store():
    return TaskStore()


@pytest.fixture
def api():
    """Training API double with a healthy server and an empty task list"""
    mock = AsyncMock()
    mock.get_health.return_value = ServerHealth(status="healthy", worker_running=True)
    mock.get_all_tasks.return_value = TaskListResponse(tasks=[], total=0)
    return mock
