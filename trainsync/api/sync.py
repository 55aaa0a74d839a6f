"""Synchronized training state API endpoints"""
import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from ..config import PollingConfig
from ..models.task import QueueStats, ServerHealth, TaskResponse, TrainingTask
from ..models.training import StandardTrainingConfig, TrainingConfig
from ..services.polling import poller
from ..services.task_store import task_store
from ..services.training_api import TrainingApiError, training_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


class PollingUpdate(BaseModel):
    """Polling interval update request (partial updates allowed)"""
    health_interval_ms: Optional[int] = Field(None, gt=0)
    tasks_interval_ms: Optional[int] = Field(None, gt=0)
    progress_interval_ms: Optional[int] = Field(None, gt=0)


@router.get("/state")
async def get_state():
    """Full snapshot of the synchronized view"""
    return task_store.snapshot()


@router.get("/tasks", response_model=List[TrainingTask])
async def list_tasks(status: Optional[str] = Query(None, pattern="^(pending|running|completed|failed)$")):
    """List known tasks, optionally filtered by status"""
    if status:
        return task_store.tasks_with_status(status)
    return task_store.tasks


@router.get("/tasks/{task_id}", response_model=TrainingTask)
async def get_task(task_id: str):
    """Get one known task by ID"""
    task = task_store.get_task(task_id)

    if not task:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")

    return task


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str):
    """Delete a task on the training server and drop it locally"""
    try:
        await training_api.delete_task(task_id)
    except TrainingApiError as e:
        logger.error(f"Failed to delete task {task_id}: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    task_store.remove_task(task_id)
    logger.info(f"Deleted task {task_id}")


@router.get("/queue", response_model=QueueStats)
async def get_queue():
    """Queue counts derived from the current task set"""
    return task_store.queue_stats()


@router.get("/server-health", response_model=Optional[ServerHealth])
async def get_server_health():
    """Last known training server health, null when offline"""
    return task_store.health


@router.get("/polling", response_model=PollingConfig)
async def get_polling():
    return poller.config


@router.put("/polling", response_model=PollingConfig)
async def update_polling(update: PollingUpdate):
    """Change polling intervals; timers restart with the new values"""
    changes = update.model_dump(exclude_none=True)
    config = poller.set_config(**changes)
    logger.info(f"Polling config updated: {changes}")
    return config


@router.post("/refresh")
async def refresh():
    """Refresh all three streams now"""
    await poller.refresh_all()
    return task_store.snapshot()


@router.post("/train/magik", response_model=TaskResponse, status_code=202)
async def start_magik_training(config: TrainingConfig):
    """Submit a magik training run"""
    return await _submit(training_api.start_magik_training, config)


@router.post("/train/std", response_model=TaskResponse, status_code=202)
async def start_standard_training(config: StandardTrainingConfig):
    """Submit a standard training run"""
    return await _submit(training_api.start_standard_training, config)


async def _submit(start, config) -> TaskResponse:
    try:
        response = await start(config)
    except TrainingApiError as e:
        logger.error(f"Training submission failed: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    logger.info(f"Submitted training task {response.task_id}")
    await poller.refresh_tasks()
    return response
