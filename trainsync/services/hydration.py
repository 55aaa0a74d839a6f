"""Detail hydration for tasks the list endpoint only summarizes"""
import asyncio
import logging
from typing import Callable, List, Optional

from ..models.task import TrainingTask
from .task_store import TaskStore

logger = logging.getLogger(__name__)

HYDRATION_BATCH_SIZE = 3

# Fields copied from a detail response. Status is left to the list refresh.
HYDRATED_FIELDS = ("config", "results", "started_at", "completed_at")


def needs_hydration(task: TrainingTask) -> bool:
    """Non-running task still missing config.num_classes or results"""
    if task.status == "running":
        return False
    return not (task.config or {}).get("num_classes") or task.results is None


def select_hydration_candidates(tasks: List[TrainingTask]) -> List[TrainingTask]:
    return [t for t in tasks if needs_hydration(t)]


async def hydrate_missing_details(
    api,
    store: TaskStore,
    batch_size: int = HYDRATION_BATCH_SIZE,
    is_current: Optional[Callable[[], bool]] = None,
) -> int:
    """Fetch full detail for hydration candidates, batch_size requests at a time.

    Batches run in sequence and each waits for all of its requests, so no more
    than batch_size detail requests are outstanding. Failed tasks stay as they
    are and get picked up again after the next list refresh.

    Returns the number of tasks patched.
    """
    candidates = select_hydration_candidates(store.tasks)
    if not candidates:
        return 0

    logger.debug(f"Hydrating {len(candidates)} task(s) in batches of {batch_size}")
    patched = 0
    for start in range(0, len(candidates), batch_size):
        batch = candidates[start:start + batch_size]
        results = await asyncio.gather(
            *(api.get_task_progress(t.task_id) for t in batch),
            return_exceptions=True,
        )

        if is_current is not None and not is_current():
            logger.debug("Polling stopped during hydration; discarding results")
            return patched

        for task, result in zip(batch, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to hydrate task {task.task_id}: {result}")
                continue
            fields = result.model_dump(include=set(HYDRATED_FIELDS))
            if store.patch_task(result.task_id, **fields):
                patched += 1

    return patched
