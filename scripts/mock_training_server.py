#!/usr/bin/env python3
"""
Mock training server

In-memory stand-in for the remote training service, for local development
and end-to-end tests. The task list only carries summary fields so clients
have to fetch detail through /api/progress/{task_id}. Each progress read of
the running task advances it by one step; one task runs at a time.
"""
import os
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict
import uvicorn

app = FastAPI(title="Mock Training Server", version="1.0.0")

# Progress gained per progress read
PROGRESS_STEP = int(os.getenv("MOCK_PROGRESS_STEP", "25"))

SUMMARY_FIELDS = ("task_id", "type", "status", "created_at", "started_at", "completed_at")

tasks: Dict[str, dict] = {}


class TrainRequest(BaseModel):
    """Training request (any parameters accepted)"""
    model_config = ConfigDict(extra="allow")

    num_classes: int


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _running() -> Optional[dict]:
    return next((t for t in tasks.values() if t["status"] == "running"), None)


def _advance_queue():
    """Start the oldest pending task when the worker is idle"""
    if _running():
        return
    pending = [t for t in tasks.values() if t["status"] == "pending"]
    if not pending:
        return
    task = min(pending, key=lambda t: t["created_at"])
    task["status"] = "running"
    task["started_at"] = _now()
    task["progress"] = {"overall_progress": 0, "current_stage": "training"}


def _step(task: dict):
    progress = task["progress"]
    progress["overall_progress"] = min(100, progress["overall_progress"] + PROGRESS_STEP)
    if progress["overall_progress"] >= 100:
        task["status"] = "completed"
        task["completed_at"] = _now()
        progress["current_stage"] = "done"
        task["results"] = {"best_map": 0.5, "epochs_run": task["config"].get("epochs", 1)}


def _create(task_type: str, request: TrainRequest) -> dict:
    task_id = str(uuid4())
    tasks[task_id] = {
        "task_id": task_id,
        "type": task_type,
        "status": "pending",
        "created_at": _now(),
        "started_at": None,
        "completed_at": None,
        "config": request.model_dump(),
        "progress": None,
        "results": None,
    }
    _advance_queue()
    return {"task_id": task_id, "status": "pending", "message": f"{task_type} training queued"}


@app.get("/api/health")
async def health():
    running = _running()
    return {
        "status": "healthy",
        "worker_running": True,
        "current_task": running["task_id"] if running else None,
        "timestamp": _now(),
    }


@app.get("/api/queue")
async def queue():
    counts = {s: 0 for s in ("pending", "running", "completed", "failed")}
    for task in tasks.values():
        counts[task["status"]] += 1
    running = _running()
    return {**counts, "current_task": running["task_id"] if running else None}


@app.get("/api/tasks")
async def list_tasks(status: Optional[str] = None, limit: int = Query(50, ge=1)):
    _advance_queue()
    selected = [t for t in tasks.values() if not status or t["status"] == status]
    selected.sort(key=lambda t: t["created_at"], reverse=True)
    summaries = [{k: t[k] for k in SUMMARY_FIELDS} for t in selected[:limit]]
    return {"tasks": summaries, "total": len(selected)}


@app.get("/api/progress/{task_id}")
async def progress(task_id: str):
    task = tasks.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    if task["status"] == "running":
        _step(task)
        _advance_queue()
    return task


@app.delete("/api/tasks/{task_id}")
async def delete(task_id: str):
    task = tasks.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    if task["status"] == "running":
        raise HTTPException(status_code=409, detail="Cannot delete a running task")
    del tasks[task_id]
    return {"message": f"Task {task_id} deleted"}


@app.post("/api/train/magik")
async def train_magik(request: TrainRequest):
    return _create("magik", request)


@app.post("/api/train/std")
async def train_std(request: TrainRequest):
    return _create("std", request)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")), log_level="info")
