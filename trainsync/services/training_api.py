"""Training server client - typed calls to the remote training service"""
import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings, load_settings
from ..models.task import ServerHealth, TaskListResponse, TaskResponse, TrainingTask, QueueStats
from ..models.training import TrainingConfig, StandardTrainingConfig

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TrainingApiError(Exception):
    """Any failure talking to the training server, reduced to one message"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_message(response: httpx.Response) -> str:
    """Extract the server's `detail` message, falling back to the status line"""
    detail = f"{response.status_code} {response.reason_phrase}"
    try:
        data = response.json()
    except ValueError:
        return detail
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return detail


class TrainingApiClient:
    """Stateless accessor for the training server endpoints"""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or load_settings()
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.training_server,
            timeout=self.settings.request_timeout,
        )

    async def aclose(self):
        """Close the underlying HTTP connection pool"""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TrainingApiError(f"Failed to fetch {path}: {e}") from e

        if not response.is_success:
            message = error_message(response)
            logger.debug(f"{method} {path} failed: {message}")
            raise TrainingApiError(message, status_code=response.status_code)
        return response

    async def _get_model(self, path: str, model: Type[ModelT], **kwargs) -> ModelT:
        response = await self._request("GET", path, **kwargs)
        return self._parse(path, response, model)

    @staticmethod
    def _parse(path: str, response: httpx.Response, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TrainingApiError(f"Invalid response from {path}: {e}", status_code=response.status_code) from e

    async def get_health(self) -> ServerHealth:
        """GET /api/health"""
        return await self._get_model("/api/health", ServerHealth)

    async def get_queue_status(self) -> QueueStats:
        """GET /api/queue - queue counts as computed by the server"""
        return await self._get_model("/api/queue", QueueStats)

    async def get_all_tasks(self, status: Optional[str] = None, limit: int = 50) -> TaskListResponse:
        """GET /api/tasks with optional status filter"""
        params = {}
        if status:
            params["status"] = status
        params["limit"] = str(limit)
        return await self._get_model("/api/tasks", TaskListResponse, params=params)

    async def get_task_progress(self, task_id: str) -> TrainingTask:
        """GET /api/progress/{task_id} - full task record"""
        return await self._get_model(f"/api/progress/{task_id}", TrainingTask)

    async def delete_task(self, task_id: str) -> None:
        """DELETE /api/tasks/{task_id}"""
        await self._request("DELETE", f"/api/tasks/{task_id}")

    async def start_magik_training(self, config: TrainingConfig) -> TaskResponse:
        """POST /api/train/magik"""
        path = "/api/train/magik"
        response = await self._request("POST", path, json=config.model_dump(exclude_none=True))
        return self._parse(path, response, TaskResponse)

    async def start_standard_training(self, config: StandardTrainingConfig) -> TaskResponse:
        """POST /api/train/std"""
        path = "/api/train/std"
        response = await self._request("POST", path, json=config.model_dump(exclude_none=True))
        return self._parse(path, response, TaskResponse)

    async def start_training(self, config: TrainingConfig) -> TaskResponse:
        """Legacy entry point, routed to magik training"""
        return await self.start_magik_training(config)


# Global client instance
training_api = TrainingApiClient()
