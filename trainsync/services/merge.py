"""Task list merge

The list endpoint is authoritative for which tasks exist and their coarse
status, but it omits expensive fields (full config, results, progress).
Merging keeps those fields from the previous view until the server sends a
replacement.
"""
from typing import Any, Dict, Iterable, List, Optional

from ..models.task import TrainingTask


def known_fields(task: TrainingTask) -> Dict[str, Any]:
    """Fields the server actually sent for this task, extras included"""
    fields = task.model_dump(exclude_unset=True)
    fields.update(task.model_extra or {})
    return fields


def merge_task(old: Optional[TrainingTask], new: TrainingTask) -> TrainingTask:
    """Field-wise union of old and new, new winning; progress only if new has one"""
    if old is None:
        return new.model_copy(deep=True)

    fields = known_fields(old)
    fields.update(known_fields(new))
    # A null or missing progress never replaces a known one
    fields["progress"] = new.progress if new.progress is not None else old.progress
    return TrainingTask.model_validate(fields)


def merge_task_list(current: Iterable[TrainingTask], snapshot: Iterable[TrainingTask]) -> List[TrainingTask]:
    """Reconcile a fresh list snapshot against the current task set.

    Membership and order follow the snapshot: ids missing from it are dropped.
    Duplicate ids inside the snapshot collapse onto the first position.
    """
    previous: Dict[str, TrainingTask] = {t.task_id: t for t in current}
    merged: Dict[str, TrainingTask] = {}

    for task in snapshot:
        base = merged.get(task.task_id, previous.get(task.task_id))
        merged[task.task_id] = merge_task(base, task)

    return list(merged.values())
