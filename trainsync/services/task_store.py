"""In-memory view of the training server state

All writes go through the named operations below (merge_list, patch_task, ...)
so every mutation is visible, ordered and observable by callbacks. The store
relies on the single event loop for exclusion: no operation awaits.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.task import QueueStats, ServerHealth, TrainingTask
from .merge import known_fields, merge_task_list

logger = logging.getLogger(__name__)

# Error text a successful health check is allowed to clear
RELATED_ERROR_MARKERS = ("health", "fetch")


class TaskStore:
    """Task set, server health record and error state"""

    def __init__(self):
        self.tasks: List[TrainingTask] = []
        self.health: Optional[ServerHealth] = None
        self.error: str = ""
        self.stream_errors: Dict[str, str] = {}
        self.version = 0
        self.callbacks: List[Callable[[str, "TaskStore"], Any]] = []

    # ---- reads ----

    def get_task(self, task_id: str) -> Optional[TrainingTask]:
        """Get task by ID"""
        index = self._index_of(task_id)
        return self.tasks[index] if index is not None else None

    def tasks_with_status(self, status: str) -> List[TrainingTask]:
        return [t for t in self.tasks if t.status == status]

    def queue_stats(self) -> QueueStats:
        """Queue counts, recomputed from the current task set on every call"""
        counts = {status: 0 for status in ("pending", "running", "completed", "failed")}
        for task in self.tasks:
            if task.status in counts:
                counts[task.status] += 1
        running = next((t for t in self.tasks if t.status == "running"), None)
        return QueueStats(**counts, current_task=running.task_id if running else None)

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view for presentation"""
        return {
            "tasks": [t.model_dump(mode="json") for t in self.tasks],
            "health": self.health.model_dump(mode="json") if self.health else None,
            "error": self.error,
            "stream_errors": dict(self.stream_errors),
            "queue": self.queue_stats().model_dump(),
            "version": self.version,
        }

    # ---- writes ----

    def merge_list(self, snapshot: List[TrainingTask]) -> None:
        """Replace membership with the snapshot, keeping known detail fields"""
        self.tasks = merge_task_list(self.tasks, snapshot)
        self._changed("merge_list")

    def patch_task(self, task_id: str, **fields: Any) -> bool:
        """Overwrite the given fields of one task; False if the id is unknown"""
        index = self._index_of(task_id)
        if index is None:
            logger.debug(f"Patch skipped, task {task_id} no longer listed")
            return False

        current = known_fields(self.tasks[index])
        current.update(fields)
        self.tasks[index] = TrainingTask.model_validate(current)
        self._changed("patch_task")
        return True

    def remove_task(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if index is None:
            return False
        del self.tasks[index]
        self._changed("remove_task")
        return True

    def set_health(self, health: ServerHealth) -> None:
        self.health = health
        self._changed("set_health")

    def clear_health(self) -> None:
        """Drop the health record so consumers show the server as offline"""
        self.health = None
        self._changed("clear_health")

    def set_error(self, message: str, stream: Optional[str] = None) -> None:
        """Set the current error; optionally also record it for its stream"""
        self.error = message
        if stream:
            self.stream_errors[stream] = message
        self._changed("set_error")

    def clear_error(self, stream: Optional[str] = None) -> None:
        """Clear one stream's error, or the shared error when no stream is given"""
        if stream:
            if self.stream_errors.pop(stream, None) is None:
                return
        elif not self.error:
            return
        else:
            self.error = ""
        self._changed("clear_error")

    def clear_related_error(self) -> bool:
        """Clear the shared error only if it looks health or fetch related"""
        if not self.error or not any(marker in self.error for marker in RELATED_ERROR_MARKERS):
            return False
        self.error = ""
        self._changed("clear_error")
        return True

    # ---- callbacks ----

    def add_callback(self, callback: Callable[[str, "TaskStore"], Any]):
        """Add a callback notified with the mutation kind after every write"""
        self.callbacks.append(callback)

    def remove_callback(self, callback: Callable[[str, "TaskStore"], Any]):
        try:
            self.callbacks.remove(callback)
        except ValueError:
            pass

    def _changed(self, kind: str):
        self.version += 1
        for callback in list(self.callbacks):
            try:
                callback(kind, self)
            except Exception as e:
                logger.error(f"Error in store callback: {e}")

    def _index_of(self, task_id: str) -> Optional[int]:
        for i, task in enumerate(self.tasks):
            if task.task_id == task_id:
                return i
        return None


# Global store instance
task_store = TaskStore()
