"""Progress refresh for running tasks"""
import asyncio
import logging
from typing import Callable, Optional

from .task_store import TaskStore

logger = logging.getLogger(__name__)

PROGRESS_FIELDS = ("status", "progress", "results", "started_at", "completed_at")


async def refresh_running_progress(
    api,
    store: TaskStore,
    is_current: Optional[Callable[[], bool]] = None,
) -> int:
    """Fetch full detail for every running task concurrently and patch it in.

    Issues no request when nothing is running. Per-task failures are logged
    and skipped. Returns the number of tasks patched.
    """
    running = store.tasks_with_status("running")
    if not running:
        return 0

    results = await asyncio.gather(
        *(api.get_task_progress(t.task_id) for t in running),
        return_exceptions=True,
    )

    if is_current is not None and not is_current():
        logger.debug("Polling stopped during progress refresh; discarding results")
        return 0

    patched = 0
    for task, result in zip(running, results):
        if isinstance(result, BaseException):
            logger.warning(f"Progress fetch failed for task {task.task_id}: {result}")
            continue
        fields = result.model_dump(include=set(PROGRESS_FIELDS))
        if store.patch_task(result.task_id, **fields):
            patched += 1
    return patched
