"""User (employee/account) data model for DMS."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from dms.models.permissions import ModulePermissions, dedupe_permissions


class UserRole(str, Enum):
    """User role enumeration."""
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    GUEST = "guest"


# Ascending privilege
ROLE_LEVELS = {
    UserRole.GUEST: 0,
    UserRole.EMPLOYEE: 1,
    UserRole.MANAGER: 2,
    UserRole.ADMIN: 3,
}


def _dedupe_matrix(v):
    if v is None:
        return None
    return {module: dedupe_permissions(perms) for module, perms in v.items()}


class User(BaseModel):
    """User model for DMS."""

    id: str = Field(..., description="Unique user identifier (identity provider uid)")
    email: str = Field(..., description="User email address (immutable)")
    display_name: str = Field(..., description="User display name")
    role: UserRole = Field(UserRole.EMPLOYEE, description="User role")
    module_permissions: ModulePermissions = Field(default_factory=dict, description="Module permission matrix")
    is_active: bool = Field(True, description="Whether the account is enabled")
    employee_id: Optional[str] = None
    plant: Optional[str] = Field(None, description="Free-text plant name or code")
    department: Optional[str] = None
    designation: Optional[str] = None
    contact_no: Optional[str] = None
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("module_permissions")
    @classmethod
    def _validate_permissions(cls, v):
        return _dedupe_matrix(v)


class UserCreate(BaseModel):
    """Request model for creating a user record."""

    id: Optional[str] = Field(None, description="Identity provider uid; generated when omitted")
    email: str = Field(..., min_length=3, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.EMPLOYEE
    module_permissions: Optional[ModulePermissions] = Field(
        None, description="Defaults to the role's permissions for every module"
    )
    is_active: bool = True
    employee_id: Optional[str] = None
    plant: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    contact_no: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email format")
        return v

    @field_validator("module_permissions")
    @classmethod
    def _validate_permissions(cls, v):
        return _dedupe_matrix(v)


class UserUpdate(BaseModel):
    """Request model for updating a user (email cannot be changed)."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
    module_permissions: Optional[ModulePermissions] = None
    is_active: Optional[bool] = None
    employee_id: Optional[str] = None
    plant: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    contact_no: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("module_permissions")
    @classmethod
    def _validate_permissions(cls, v):
        return _dedupe_matrix(v)
