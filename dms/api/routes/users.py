"""User and permission endpoints."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dms.api.schemas import data_envelope, page_envelope, page_offset
from dms.auth.dependencies import get_current_user, require_role
from dms.database.database import get_db
from dms.database.models import permissions_to_json
from dms.database.user_repository import UserRepository
from dms.engine.permissions import default_permissions_for_role
from dms.errors import Conflict, NotFound, PermissionDenied
from dms.models.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dms.models.permissions import UserPermissionUpdate
from dms.models.user import User, UserCreate, UserRole, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

_admin = require_role(UserRole.ADMIN)
_manager = require_role(UserRole.MANAGER)


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return data_envelope(current_user)


@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(_manager),
):
    items, total = UserRepository(db).list(offset=page_offset(page, limit), limit=limit)
    return page_envelope(items, page=page, limit=limit, total=total)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    request: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    """Create a user record; permissions default to the role's."""
    repo = UserRepository(db)
    if repo.get_by_email(request.email):
        raise Conflict("A user with this email already exists", code="EMAIL_EXISTS", details={"email": request.email})
    if request.id and repo.get(request.id):
        raise Conflict("A user with this id already exists", code="USER_EXISTS", details={"id": request.id})

    now = datetime.utcnow()
    data = request.model_dump()
    if data["module_permissions"] is None:
        data["module_permissions"] = default_permissions_for_role(request.role)
    data["id"] = request.id or str(uuid.uuid4())
    user = User(created_at=now, updated_at=now, **data)

    created = repo.create(user)
    logger.info(f"User {current_user.id} created user {created.id} ({created.role})")
    return data_envelope(created)


@router.get("/{user_id}")
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id and current_user.role not in (UserRole.ADMIN.value, UserRole.MANAGER.value):
        raise PermissionDenied("You can only view your own profile")
    user = UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return data_envelope(user)


@router.put("/{user_id}")
def update_user(
    user_id: str,
    request: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    repo = UserRepository(db)
    user = repo.get(user_id)
    if user is None:
        raise NotFound("User not found")

    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items()}
    for field in ("display_name", "role", "is_active", "module_permissions"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    changes["updated_at"] = datetime.utcnow()

    updated = repo.update(User.model_validate({**user.model_dump(), **changes}))
    logger.info(f"User {current_user.id} updated user {user_id}")
    return data_envelope(updated)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    if user_id == current_user.id:
        raise Conflict("You cannot delete your own account", code="CANNOT_DELETE_SELF")
    if not UserRepository(db).delete(user_id):
        raise NotFound("User not found")
    logger.info(f"User {current_user.id} deleted user {user_id}")
    return data_envelope({"message": "User deleted successfully"})


@router.get("/{user_id}/permissions")
def get_user_permissions(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id and current_user.role != UserRole.ADMIN.value:
        raise PermissionDenied("Admin role required", code="ADMIN_REQUIRED")
    user = UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return data_envelope({"role": user.role, "modulePermissions": permissions_to_json(user.module_permissions)})


@router.put("/{user_id}/permissions")
def update_user_permissions(
    user_id: str,
    request: UserPermissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
):
    """Replace the permissions of one module for a user."""
    repo = UserRepository(db)
    user = repo.get(user_id)
    if user is None:
        raise NotFound("User not found")

    matrix = permissions_to_json(user.module_permissions)
    matrix[request.module] = list(request.permissions)
    updated = repo.update(
        user.model_copy(update={"module_permissions": matrix, "updated_at": datetime.utcnow()})
    )
    logger.info(f"User {current_user.id} set {request.module} permissions for {user_id}")
    return data_envelope({"role": updated.role, "modulePermissions": permissions_to_json(updated.module_permissions)})
