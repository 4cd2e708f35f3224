"""Task instance endpoints: listing, lifecycle updates and generation."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dms.api.schemas import GenerateResponse, data_envelope, page_envelope, page_offset
from dms.auth.dependencies import require_permission
from dms.database.database import get_db
from dms.database.task_instance_repository import TaskInstanceRepository
from dms.database.task_master_repository import TaskMasterRepository
from dms.engine.lifecycle import apply_status_update
from dms.engine.permissions import has_role_at_least
from dms.errors import Conflict, NotFound, PermissionDenied
from dms.models.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dms.models.permissions import Module, Permission
from dms.models.task_factory import create_instance_from_master
from dms.models.task_instance import TaskInstanceCreate, TaskInstanceUpdate, TaskStatus
from dms.models.task_master import TaskPriority
from dms.models.user import User, UserRole
from dms.recurrence.generate import generate_task_instances

logger = logging.getLogger(__name__)

router = APIRouter()

_read = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.READ)
_write = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.WRITE)
_delete = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.DELETE)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task_instance(
    request: TaskInstanceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    """Create an instance of a master for explicit dates."""
    master = TaskMasterRepository(db).get(request.task_master_id)
    if master is None:
        raise NotFound("Task master not found")

    instance = create_instance_from_master(
        master, request.scheduled_date, request.due_date, created_by=current_user.id
    )
    try:
        created = TaskInstanceRepository(db).create(instance)
    except IntegrityError:
        raise Conflict(
            "An instance already exists for this task master on that date",
            code="INSTANCE_EXISTS",
            details={"taskMasterId": master.id, "scheduledDate": request.scheduled_date.isoformat()},
        )
    return data_envelope(created)


@router.post("/generate")
def generate_instances(
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    """Materialize due instances for every active recurring master (admins and managers only)."""
    if not has_role_at_least(current_user, UserRole.MANAGER):
        raise PermissionDenied("Only admins and managers can generate tasks", code="FORBIDDEN")

    result = generate_task_instances(db)
    logger.info(f"User {current_user.id} ran generation: {result.generated} generated, {result.errors} errors")
    return data_envelope(
        GenerateResponse(generated=result.generated, errors=result.errors, message=result.summary())
    )


@router.get("/my-tasks")
def list_my_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    plant_id: Optional[str] = Query(None, alias="plantId"),
    scheduled_from: Optional[date] = Query(None, alias="scheduledDateFrom"),
    scheduled_to: Optional[date] = Query(None, alias="scheduledDateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    """Instances assigned to the caller."""
    items, total = TaskInstanceRepository(db).list(
        assigned_to=current_user.id,
        status=status_filter,
        plant_id=plant_id,
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
        offset=page_offset(page, limit),
        limit=limit,
    )
    return page_envelope(items, page=page, limit=limit, total=total)


@router.get("")
def list_task_instances(
    task_master_id: Optional[str] = Query(None, alias="taskMasterId"),
    plant_id: Optional[str] = Query(None, alias="plantId"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    scheduled_from: Optional[date] = Query(None, alias="scheduledDateFrom"),
    scheduled_to: Optional[date] = Query(None, alias="scheduledDateTo"),
    due_from: Optional[date] = Query(None, alias="dueDateFrom"),
    due_to: Optional[date] = Query(None, alias="dueDateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    items, total = TaskInstanceRepository(db).list(
        task_master_id=task_master_id,
        plant_id=plant_id,
        assigned_to=assigned_to,
        status=status_filter,
        priority=priority,
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
        due_from=due_from,
        due_to=due_to,
        offset=page_offset(page, limit),
        limit=limit,
    )
    return page_envelope(items, page=page, limit=limit, total=total)


@router.get("/{instance_id}")
def get_task_instance(
    instance_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    instance = TaskInstanceRepository(db).get(instance_id)
    if instance is None:
        raise NotFound("Task instance not found")
    return data_envelope(instance)


@router.put("/{instance_id}")
def update_task_instance(
    instance_id: str,
    request: TaskInstanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    """Move an instance through its lifecycle and record notes / actual duration.

    Only the assignee, a manager or an admin may update an instance.
    """
    repo = TaskInstanceRepository(db)
    instance = repo.get(instance_id)
    if instance is None:
        raise NotFound("Task instance not found")

    if instance.assigned_to != current_user.id and not has_role_at_least(current_user, UserRole.MANAGER):
        raise PermissionDenied("You can only update your own tasks", code="FORBIDDEN")

    updated = repo.update(apply_status_update(instance, request))
    logger.info(f"User {current_user.id} updated task instance {instance_id}: status={updated.status}")
    return data_envelope(updated)


@router.delete("/{instance_id}")
def delete_task_instance(
    instance_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_delete),
):
    if not TaskInstanceRepository(db).delete(instance_id):
        raise NotFound("Task instance not found")
    return data_envelope({"message": "Task instance deleted successfully"})
