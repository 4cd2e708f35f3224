"""Task creation factory for DMS.

This module centralizes task master and task instance creation so that ids,
timestamps and the fields copied from a master onto its instances are set the
same way everywhere (API routes, the generator and the one-time task path).
"""

import uuid
from datetime import date, datetime
from typing import Optional

from dms.models.constants import SYSTEM_CREATOR
from dms.models.task_instance import TaskInstance, TaskStatus
from dms.models.task_master import TaskMaster, TaskMasterCreate, TaskType


def create_task_master(
    data: TaskMasterCreate,
    plant_id: str,
    assigned_by: str,
    created_by: str,
    task_type: TaskType = TaskType.RECURRING,
) -> TaskMaster:
    """Build a new TaskMaster from a validated create request.

    One-time masters are stored inactive so the generator never expands them.

    Args:
        data: Validated create request
        plant_id: Plant derived from the assignee
        assigned_by: User ID of the assigning manager/admin
        created_by: User ID of the caller
        task_type: Recurring template or one-time task

    Returns:
        TaskMaster with a fresh id and timestamps
    """
    now = datetime.utcnow()
    return TaskMaster(
        id=str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        plant_id=plant_id,
        assigned_to=data.assigned_to,
        assigned_by=assigned_by,
        priority=data.priority,
        frequency=data.frequency,
        frequency_value=data.frequency_value,
        frequency_unit=data.frequency_unit,
        start_date=data.start_date,
        is_active=task_type == TaskType.RECURRING,
        task_type=task_type,
        estimated_duration=data.estimated_duration,
        instructions=data.instructions,
        tags=list(data.tags or []),
        last_generated=None,
        last_occurrence_date=None,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )


def create_instance_from_master(
    master: TaskMaster,
    scheduled_date: date,
    due_date: date,
    created_by: Optional[str] = None,
) -> TaskInstance:
    """Build a pending TaskInstance that copies the master's descriptive fields.

    Args:
        master: Originating task master
        scheduled_date: When the work should be performed
        due_date: When the work is due (must not precede scheduled_date)
        created_by: Creator; generated instances use the system creator

    Returns:
        TaskInstance in the pending state
    """
    if due_date < scheduled_date:
        raise ValueError("dueDate must be on or after scheduledDate")
    now = datetime.utcnow()
    return TaskInstance(
        id=str(uuid.uuid4()),
        task_master_id=master.id,
        title=master.title,
        description=master.description,
        plant_id=master.plant_id,
        assigned_to=master.assigned_to,
        assigned_by=master.assigned_by,
        priority=master.priority,
        instructions=master.instructions,
        tags=list(master.tags or []),
        scheduled_date=scheduled_date,
        due_date=due_date,
        status=TaskStatus.PENDING,
        completed_at=None,
        notes=None,
        estimated_duration=master.estimated_duration,
        actual_duration=None,
        created_by=created_by or SYSTEM_CREATOR,
        created_at=now,
        updated_at=now,
    )
