"""Plant endpoints."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dms.api.schemas import data_envelope
from dms.auth.dependencies import require_permission
from dms.database.database import get_db
from dms.database.plant_repository import PlantRepository
from dms.errors import Conflict, NotFound, ValidationFailed
from dms.models.permissions import Module, Permission
from dms.models.plant import Plant, PlantCreate, PlantUpdate
from dms.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

_read = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.READ)
_write = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.WRITE)
_delete = require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.DELETE)


def _code_exists(code: str) -> Conflict:
    return Conflict(f"Plant code {code} already exists", code="PLANT_CODE_EXISTS", details={"code": code})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_plant(
    request: PlantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    repo = PlantRepository(db)
    if repo.get_by_code(request.code):
        raise _code_exists(request.code)

    now = datetime.utcnow()
    plant = Plant(
        id=str(uuid.uuid4()),
        created_by=current_user.id,
        created_at=now,
        updated_at=now,
        **request.model_dump(),
    )
    try:
        created = repo.create(plant)
    except IntegrityError:
        raise _code_exists(request.code)
    logger.info(f"User {current_user.id} created plant {created.code}")
    return data_envelope(created)


@router.get("")
def list_plants(
    active_only: bool = Query(False, alias="activeOnly"),
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    return data_envelope(PlantRepository(db).list(active_only=active_only))


@router.get("/{plant_id}")
def get_plant(
    plant_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_read),
):
    plant = PlantRepository(db).get(plant_id)
    if plant is None:
        raise NotFound("Plant not found")
    return data_envelope(plant)


@router.put("/{plant_id}")
def update_plant(
    plant_id: str,
    request: PlantUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_write),
):
    repo = PlantRepository(db)
    plant = repo.get(plant_id)
    if plant is None:
        raise NotFound("Plant not found")

    changes = request.model_dump(exclude_unset=True)
    code = changes.pop("code", None)
    if code is not None and code != plant.code:
        raise ValidationFailed("Plant code cannot be changed", code="PLANT_CODE_IMMUTABLE", details={"code": plant.code})
    if "name" in changes and changes["name"] is None:
        changes.pop("name")
    if "is_active" in changes and changes["is_active"] is None:
        changes.pop("is_active")

    changes["updated_at"] = datetime.utcnow()
    updated = repo.update(plant.model_copy(update=changes))
    return data_envelope(updated)


@router.delete("/{plant_id}")
def delete_plant(
    plant_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_delete),
):
    """Delete a plant that no user is assigned to."""
    repo = PlantRepository(db)
    plant = repo.get(plant_id)
    if plant is None:
        raise NotFound("Plant not found")
    if repo.is_in_use(plant):
        raise Conflict("Plant is assigned to one or more users", code="PLANT_IN_USE", details={"code": plant.code})

    repo.delete(plant_id)
    logger.info(f"User {current_user.id} deleted plant {plant.code}")
    return data_envelope({"message": "Plant deleted successfully"})
