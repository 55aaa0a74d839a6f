"""Test the training server client"""
import json

import httpx
import pytest

from trainsync.config import Settings
from trainsync.models.training import StandardTrainingConfig, TrainingConfig
from trainsync.services.training_api import TrainingApiClient, TrainingApiError, error_message


def make_client(handler) -> TrainingApiClient:
    settings = Settings(training_server="http://trainer.test")
    transport = httpx.MockTransport(handler)
    return TrainingApiClient(
        settings,
        client=httpx.AsyncClient(base_url=settings.training_server, transport=transport),
    )


async def test_get_health():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/health"
        return httpx.Response(200, json={
            "status": "healthy",
            "worker_running": True,
            "current_task": "t1",
            "timestamp": "2024-01-01T00:00:00Z",
        })

    api = make_client(handler)
    health = await api.get_health()

    assert health.status == "healthy"
    assert health.worker_running is True
    assert health.current_task == "t1"
    await api.aclose()


async def test_get_all_tasks_default_limit():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={
            "tasks": [{"task_id": "t1", "status": "completed", "created_at": "2024-01-01T00:00:00Z"}],
            "total": 1,
        })

    api = make_client(handler)
    listing = await api.get_all_tasks()

    assert seen["params"] == {"limit": "50"}
    assert listing.total == 1
    assert listing.tasks[0].task_id == "t1"


async def test_get_all_tasks_with_status_filter():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"tasks": [], "total": 0})

    api = make_client(handler)
    await api.get_all_tasks(status="running", limit=10)

    assert seen["params"] == {"status": "running", "limit": "10"}


async def test_get_task_progress():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/progress/t1"
        return httpx.Response(200, json={
            "task_id": "t1",
            "type": "magik",
            "status": "running",
            "progress": {"overall_progress": 40, "current_stage": "training"},
            "config": {"num_classes": 3},
        })

    api = make_client(handler)
    task = await api.get_task_progress("t1")

    assert task.type == "magik"
    assert task.progress["overall_progress"] == 40


async def test_delete_task():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        return httpx.Response(204)

    api = make_client(handler)
    assert await api.delete_task("t9") is None
    assert seen == {"method": "DELETE", "path": "/api/tasks/t9"}


async def test_error_uses_detail_field():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Task t1 not found"})

    api = make_client(handler)
    with pytest.raises(TrainingApiError) as exc_info:
        await api.get_task_progress("t1")

    assert exc_info.value.message == "Task t1 not found"
    assert exc_info.value.status_code == 404
    assert str(exc_info.value) == "Task t1 not found"


async def test_error_falls_back_to_status_line_on_unparseable_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    api = make_client(handler)
    with pytest.raises(TrainingApiError) as exc_info:
        await api.get_health()

    assert exc_info.value.message == "502 Bad Gateway"


async def test_error_falls_back_when_detail_missing():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    api = make_client(handler)
    with pytest.raises(TrainingApiError) as exc_info:
        await api.get_all_tasks()

    assert exc_info.value.message == "500 Internal Server Error"


def test_error_message_ignores_non_object_body():
    response = httpx.Response(503, content=json.dumps(["down"]).encode())

    assert error_message(response) == "503 Service Unavailable"


async def test_transport_failure_becomes_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = make_client(handler)
    with pytest.raises(TrainingApiError) as exc_info:
        await api.get_health()

    assert exc_info.value.message.startswith("Failed to fetch /api/health")
    assert exc_info.value.status_code is None


async def test_malformed_success_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "sideways"})

    api = make_client(handler)
    with pytest.raises(TrainingApiError) as exc_info:
        await api.get_health()

    assert exc_info.value.message.startswith("Invalid response from /api/health")


async def test_start_training_variants():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"task_id": "new", "status": "pending", "message": "queued"})

    api = make_client(handler)
    magik = TrainingConfig(dataset_path="/data/a", num_classes=3)
    std = StandardTrainingConfig(dataset_path="/data/b", num_classes=5, pretrained=False)

    assert (await api.start_magik_training(magik)).task_id == "new"
    await api.start_standard_training(std)
    await api.start_training(magik)

    assert [path for path, _ in seen] == ["/api/train/magik", "/api/train/std", "/api/train/magik"]
    assert seen[0][1]["num_classes"] == 3
    assert "model_name" not in seen[0][1]
    assert seen[1][1]["pretrained"] is False


async def test_get_queue_status():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/queue"
        return httpx.Response(200, json={"pending": 2, "running": 1, "completed": 4, "current_task": "t1"})

    api = make_client(handler)
    queue = await api.get_queue_status()

    assert queue.pending == 2
    assert queue.failed == 0
    assert queue.current_task == "t1"
