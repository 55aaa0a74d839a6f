"""Pytest configuration for API tests"""
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from trainsync.config import PollingConfig
from trainsync.main import app
from trainsync.services.polling import TrainingPoller


@pytest.fixture
def sync_poller(api, store):
    poller = TrainingPoller(
        api, store,
        config=PollingConfig(health_interval_ms=60000, tasks_interval_ms=60000, progress_interval_ms=60000),
    )
    yield poller
    poller.stop()


@pytest.fixture
async def client(api, store, sync_poller):
    """HTTP client for API testing, wired to the store and API doubles"""
    with patch("trainsync.api.sync.task_store", store), \
            patch("trainsync.api.sync.training_api", api), \
            patch("trainsync.api.sync.poller", sync_poller), \
            patch("trainsync.api.websocket.task_store", store):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
