"""Runtime configuration read from the environment"""
import os
from pydantic import BaseModel, Field


class PollingConfig(BaseModel):
    """Polling intervals in milliseconds"""
    health_interval_ms: int = Field(default=30000, gt=0)
    tasks_interval_ms: int = Field(default=15000, gt=0)
    progress_interval_ms: int = Field(default=1000, gt=0)


class Settings(BaseModel):
    """Client settings"""
    training_server: str = "http://localhost:8000"
    request_timeout: float = Field(default=10.0, gt=0)
    hydration_concurrency: int = Field(default=3, ge=1)
    task_list_limit: int = Field(default=50, ge=1)
    polling: PollingConfig = Field(default_factory=PollingConfig)


def default_polling_config() -> PollingConfig:
    """Polling intervals, overridable via POLL_*_MS"""
    return PollingConfig(
        health_interval_ms=int(os.getenv("POLL_HEALTH_MS", "30000")),
        tasks_interval_ms=int(os.getenv("POLL_TASKS_MS", "15000")),
        progress_interval_ms=int(os.getenv("POLL_PROGRESS_MS", "1000")),
    )


def load_settings() -> Settings:
    """Build settings from environment variables"""
    return Settings(
        training_server=os.getenv("TRAINING_SERVER", "http://localhost:8000").rstrip("/"),
        request_timeout=float(os.getenv("TRAINING_API_TIMEOUT", "10")),
        hydration_concurrency=int(os.getenv("HYDRATION_CONCURRENCY", "3")),
        task_list_limit=int(os.getenv("TASK_LIST_LIMIT", "50")),
        polling=default_polling_config(),
    )
