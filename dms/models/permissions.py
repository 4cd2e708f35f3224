"""Module permission matrix for DMS.

Permissions are a fixed table of modules x permission kinds. Unknown module or
permission names fail validation when the model is built.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Module(str, Enum):
    """Application modules that carry their own permissions."""
    EMPLOYEE_TASK_MANAGER = "employeeTaskManager"
    PMS = "pms"
    HUMAN_RESOURCE = "humanResource"
    MAINTENANCE = "maintenance"


class Permission(str, Enum):
    """Permission kinds within a module."""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    ADMIN = "admin"


ModulePermissions = Dict[Module, List[Permission]]


def dedupe_permissions(permissions: List[Permission]) -> List[Permission]:
    """Deduplicate while preserving order."""
    seen = set()
    out: List[Permission] = []
    for p in permissions:
        if p not in seen:
            seen.add(p)
            out.append(p)
    return out


class UserPermissionUpdate(BaseModel):
    """Request model for replacing one module's permissions for a user."""

    module: Module
    permissions: List[Permission] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("permissions")
    @classmethod
    def _dedupe(cls, v):
        return dedupe_permissions(v)
