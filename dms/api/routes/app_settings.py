"""Application branding settings endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dms.api.schemas import data_envelope
from dms.auth.dependencies import require_permission
from dms.database.app_settings_repository import AppSettingsRepository
from dms.database.database import get_db
from dms.models.app_settings import AppSettingsUpdate
from dms.models.permissions import Module, Permission
from dms.models.user import User

router = APIRouter()


@router.get("")
def get_app_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.READ)),
):
    return data_envelope(AppSettingsRepository(db).get())


@router.put("")
def update_app_settings(
    request: AppSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Module.EMPLOYEE_TASK_MANAGER, Permission.WRITE)),
):
    """Update branding; empty strings clear a field."""
    return data_envelope(AppSettingsRepository(db).update(request, updated_by=current_user.id))
