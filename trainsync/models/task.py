"""Task data models"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


TASK_STATUSES = ("pending", "running", "completed", "failed")


class TrainingTask(BaseModel):
    """One training job as reported by the training server.

    Extra fields are kept so anything the server adds survives a merge.
    """
    model_config = ConfigDict(extra="allow")

    task_id: str
    type: Optional[str] = None  # magik, std
    status: str = Field(..., pattern="^(pending|running|completed|failed)$")
    created_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    progress: Optional[Dict[str, Any]] = None
    results: Optional[Dict[str, Any]] = None


class ServerHealth(BaseModel):
    """Training server health record"""
    status: str = Field(..., pattern="^(healthy|unhealthy)$")
    worker_running: bool = False
    current_task: Optional[str] = None
    timestamp: Optional[str] = None


class TaskListResponse(BaseModel):
    """Response of the task list endpoint"""
    tasks: List[TrainingTask] = Field(default_factory=list)
    total: int = 0


class TaskResponse(BaseModel):
    """Training submission response"""
    task_id: str
    status: str
    message: str


class QueueStats(BaseModel):
    """Queue counts derived from the current task set"""
    pending: int = 0
    running: int = 0
    completed: int = 0
    failed: int = 0
    current_task: Optional[str] = None
