"""Task master endpoints."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dms.api.schemas import data_envelope, page_envelope, page_offset
from dms.auth.dependencies import require_permission
from dms.database.database import get_db
from dms.database.plant_repository import PlantRepository
from dms.database.task_instance_repository import TaskInstanceRepository
from dms.database.task_master_repository import TaskMasterRepository
from dms.database.user_repository import UserRepository
from dms.engine.plant_match import derive_plant_for_assignee
from dms.errors import NotFound, ValidationFailed
from dms.models.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dms.models.permissions import Module, Permission
from dms.models.task_factory import create_instance_from_master, create_task_master
from dms.models.task_master import (
    OneTimeTaskCreate,
    TaskFrequency,
    TaskMaster,
    TaskMasterCreate,
    TaskMasterUpdate,
    TaskType,
)
from dms.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

_read = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.READ)
_write = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.WRITE)
_delete = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.DELETE)


def resolve_plant_id(db: Session, assigned_to: str, requested_plant_id: Optional[str] = None) -> str:
    """Plant of the assignee's employee record.

    Raises:
        ValidationFailed: when the assignee is unknown, has no plant, the plant text
            matches no plant, or the caller supplied a different plant
    """
    assignee = UserRepository(db).get(assigned_to)
    if assignee is None:
        raise ValidationFailed("Assignee not found", code="ASSIGNEE_NOT_FOUND", details={"assignedTo": assigned_to})

    match = derive_plant_for_assignee(assignee, PlantRepository(db).list(active_only=True))
    if not match.matched:
        raise ValidationFailed(
            f"Cannot determine plant for assignee {assignee.display_name}",
            code=match.outcome.value,
            details={"assignedTo": assigned_to, "plant": assignee.plant},
        )
    if requested_plant_id and requested_plant_id != match.plant.id:
        raise ValidationFailed(
            "plantId does not match the assignee's plant",
            code="PLANT_MISMATCH",
            details={"plantId": requested_plant_id, "derivedPlantId": match.plant.id},
        )
    return match.plant.id


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task_master_endpoint(
    request: TaskMasterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    """Create a recurring task master."""
    plant_id = resolve_plant_id(db, request.assigned_to, request.plant_id)
    master = create_task_master(
        request,
        plant_id=plant_id,
        assigned_by=request.assigned_by or current_user.id,
        created_by=current_user.id,
    )
    created = TaskMasterRepository(db).create(master)
    logger.info(f"User {current_user.id} created task master {created.id}")
    return data_envelope(created)


@router.post("/one-time", status_code=status.HTTP_201_CREATED)
def create_one_time_task(
    request: OneTimeTaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    """Create a one-time task: an inactive master plus its single instance, in one transaction."""
    plant_id = resolve_plant_id(db, request.assigned_to, request.plant_id)
    master = create_task_master(
        request,
        plant_id=plant_id,
        assigned_by=request.assigned_by or current_user.id,
        created_by=current_user.id,
        task_type=TaskType.ONE_TIME,
    )
    instance = create_instance_from_master(
        master, request.scheduled_date, request.due_date, created_by=current_user.id
    )

    master = TaskMasterRepository(db).create(master, commit=False)
    instance = TaskInstanceRepository(db).create(instance)
    logger.info(f"User {current_user.id} created one-time task {master.id}")
    return data_envelope({"taskMaster": master, "taskInstance": instance})


@router.get("")
def list_task_masters(
    plant_id: Optional[str] = Query(None, alias="plantId"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    assigned_by: Optional[str] = Query(None, alias="assignedBy"),
    frequency: Optional[TaskFrequency] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    items, total = TaskMasterRepository(db).list(
        plant_id=plant_id,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        frequency=frequency,
        is_active=is_active,
        offset=page_offset(page, limit),
        limit=limit,
    )
    return page_envelope(items, page=page, limit=limit, total=total)


@router.get("/{master_id}")
def get_task_master(
    master_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    master = TaskMasterRepository(db).get(master_id)
    if master is None:
        raise NotFound("Task master not found")
    return data_envelope(master)


def apply_master_update(db: Session, master: TaskMaster, update: TaskMasterUpdate) -> TaskMaster:
    """Merge a partial update into a master, re-validating frequency and plant."""
    changes = update.model_dump(exclude_unset=True)
    if changes.get("is_active") is None:
        changes.pop("is_active", None)

    if master.is_one_time and changes.get("is_active"):
        raise ValidationFailed("One-time task masters cannot be activated", code="ONE_TIME_NOT_RECURRING")

    frequency = changes.get("frequency") or master.frequency
    if frequency == TaskFrequency.CUSTOM.value:
        value = changes.get("frequency_value", master.frequency_value)
        unit = changes.get("frequency_unit", master.frequency_unit)
        if value is None or unit is None:
            raise ValidationFailed(
                "frequencyValue and frequencyUnit are required for custom frequency",
                details=[{"field": "frequencyValue"}, {"field": "frequencyUnit"}],
            )
        changes["frequency_value"] = value
        changes["frequency_unit"] = unit
    else:
        changes["frequency_value"] = None
        changes["frequency_unit"] = None

    for field in ("title", "description", "estimated_duration", "start_date", "priority", "frequency", "assigned_to", "tags"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    assigned_to = changes.get("assigned_to", master.assigned_to)
    if "assigned_to" in changes or "plant_id" in changes:
        changes["plant_id"] = resolve_plant_id(db, assigned_to, changes.get("plant_id"))

    if "start_date" in changes and changes["start_date"] != master.start_date:
        # New anchor: occurrences restart from the new start date
        changes["last_occurrence_date"] = None

    changes["updated_at"] = datetime.utcnow()
    return TaskMaster.model_validate({**master.model_dump(), **changes})


@router.put("/{master_id}")
def update_task_master(
    master_id: str,
    request: TaskMasterUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    repo = TaskMasterRepository(db)
    master = repo.get(master_id)
    if master is None:
        raise NotFound("Task master not found")

    updated = repo.update(apply_master_update(db, master, request))
    logger.info(f"User {current_user.id} updated task master {master_id}")
    return data_envelope(updated)


@router.delete("/{master_id}")
def delete_task_master(
    master_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_delete),
):
    """Delete a task master. Its instances are kept."""
    if not TaskMasterRepository(db).delete(master_id):
        raise NotFound("Task master not found")
    logger.info(f"User {current_user.id} deleted task master {master_id}")
    return data_envelope({"message": "Task master deleted successfully"})
