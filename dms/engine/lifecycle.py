"""Task instance lifecycle rules.

pending -> in-progress -> completed, with cancelled reachable from pending and
in-progress. completed and cancelled are terminal.
"""

from datetime import date, datetime
from typing import Dict, FrozenSet, Optional

from dms.errors import Conflict
from dms.models.constants import DUE_SOON_DAYS
from dms.models.task_instance import TaskInstance, TaskInstanceUpdate, TaskStatus


ALLOWED_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Whether a status change is allowed. Staying in the same status is always allowed."""
    current = TaskStatus(current)
    target = TaskStatus(target)
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def apply_status_update(
    instance: TaskInstance,
    update: TaskInstanceUpdate,
    now: Optional[datetime] = None,
) -> TaskInstance:
    """Return a copy of `instance` with the update applied.

    Raises:
        Conflict: INVALID_STATUS_TRANSITION when the status change is not allowed
    """
    now = now or datetime.utcnow()
    changes = {"updated_at": now}

    if update.status is not None:
        current = TaskStatus(instance.status)
        target = TaskStatus(update.status)
        if not can_transition(current, target):
            raise Conflict(
                f"Cannot change status from {current.value} to {target.value}",
                code="INVALID_STATUS_TRANSITION",
                details={"from": current.value, "to": target.value},
            )
        if target != current:
            changes["status"] = target
            if target == TaskStatus.COMPLETED:
                changes["completed_at"] = update.completed_at or now

    if update.notes is not None:
        changes["notes"] = update.notes
    if update.actual_duration is not None:
        changes["actual_duration"] = update.actual_duration

    return instance.model_copy(update=changes)


def days_until_due(due_date: date, today: Optional[date] = None) -> int:
    """Whole days from today to the due date (negative once past due)."""
    today = today or date.today()
    return (due_date - today).days


def is_overdue(due_date: date, status: TaskStatus, today: Optional[date] = None) -> bool:
    """Past due and not completed."""
    today = today or date.today()
    return due_date < today and TaskStatus(status) != TaskStatus.COMPLETED


def is_due_soon(due_date: date, status: TaskStatus, today: Optional[date] = None) -> bool:
    days = days_until_due(due_date, today)
    return 0 < days <= DUE_SOON_DAYS and TaskStatus(status) != TaskStatus.COMPLETED
