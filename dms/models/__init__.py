"""Data models for DMS."""

from dms.models.task_master import TaskMaster, TaskFrequency, FrequencyUnit, TaskPriority, TaskType
from dms.models.task_instance import TaskInstance, TaskStatus
from dms.models.plant import Plant
from dms.models.user import User, UserRole
from dms.models.permissions import Module, Permission
from dms.models.app_settings import AppSettings

__all__ = [
    "TaskMaster",
    "TaskFrequency",
    "FrequencyUnit",
    "TaskPriority",
    "TaskType",
    "TaskInstance",
    "TaskStatus",
    "Plant",
    "User",
    "UserRole",
    "Module",
    "Permission",
    "AppSettings",
]
