"""SQLAlchemy database models for DMS."""

from datetime import datetime
from typing import Type, TypeVar, Union
import uuid
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, ForeignKey, UniqueConstraint

from dms.database.database import Base
from dms.models.task_master import TaskPriority, TaskFrequency, TaskType
from dms.models.task_instance import TaskStatus
from dms.models.user import UserRole

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def permissions_to_json(matrix) -> dict:
    """Module permission matrix as plain strings for the JSON column."""
    return {
        enum_to_value(module): [enum_to_value(p) for p in perms]
        for module, perms in (matrix or {}).items()
    }


class TaskMasterDB(Base):
    """Database model for TaskMaster."""

    __tablename__ = "task_masters"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Description
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    instructions = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    # Assignment
    plant_id = Column(String, nullable=False, index=True)
    assigned_to = Column(String, nullable=False, index=True)
    assigned_by = Column(String, nullable=False, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    estimated_duration = Column(Integer, nullable=False)

    # Recurrence
    frequency = Column(String, nullable=False, index=True)
    frequency_value = Column(Integer, nullable=True)
    frequency_unit = Column(String, nullable=True)
    start_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    task_type = Column(String, nullable=False, default=TaskType.RECURRING.value)
    last_generated = Column(DateTime, nullable=True)
    last_occurrence_date = Column(Date, nullable=True)

    # Audit
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dms.models.task_master import TaskMaster, FrequencyUnit
        return TaskMaster(
            id=self.id,
            title=self.title,
            description=self.description,
            plant_id=self.plant_id,
            assigned_to=self.assigned_to,
            assigned_by=self.assigned_by,
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            frequency=TaskFrequency(self.frequency),
            frequency_value=self.frequency_value,
            frequency_unit=FrequencyUnit(self.frequency_unit) if self.frequency_unit else None,
            start_date=self.start_date,
            is_active=self.is_active,
            task_type=value_to_enum(self.task_type, TaskType, TaskType.RECURRING),
            estimated_duration=self.estimated_duration,
            instructions=self.instructions,
            tags=self.tags or [],
            last_generated=self.last_generated,
            last_occurrence_date=self.last_occurrence_date,
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, master):
        """Create database model from Pydantic model."""
        return cls(
            id=master.id,
            title=master.title,
            description=master.description,
            plant_id=master.plant_id,
            assigned_to=master.assigned_to,
            assigned_by=master.assigned_by,
            priority=enum_to_value(master.priority),
            frequency=enum_to_value(master.frequency),
            frequency_value=master.frequency_value,
            frequency_unit=enum_to_value(master.frequency_unit) if master.frequency_unit else None,
            start_date=master.start_date,
            is_active=master.is_active,
            task_type=enum_to_value(master.task_type),
            estimated_duration=master.estimated_duration,
            instructions=master.instructions,
            tags=list(master.tags or []),
            last_generated=master.last_generated,
            last_occurrence_date=master.last_occurrence_date,
            created_by=master.created_by,
            created_at=master.created_at,
            updated_at=master.updated_at,
        )


class TaskInstanceDB(Base):
    """Database model for TaskInstance."""

    __tablename__ = "task_instances"
    __table_args__ = (
        # At most one instance per master and scheduled date.
        # Orphaned rows (NULL master) do not participate.
        UniqueConstraint("task_master_id", "scheduled_date", name="uq_task_instance_occurrence"),
    )

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Deleting a master keeps its instances
    task_master_id = Column(String, ForeignKey("task_masters.id", ondelete="SET NULL"), nullable=True, index=True)

    # Copied from the master at creation
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    plant_id = Column(String, nullable=False, index=True)
    assigned_to = Column(String, nullable=False, index=True)
    assigned_by = Column(String, nullable=False)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    instructions = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    estimated_duration = Column(Integer, nullable=False)

    # Schedule and progress
    scheduled_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value, index=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(String, nullable=True)
    actual_duration = Column(Integer, nullable=True)

    # Audit
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dms.models.task_instance import TaskInstance
        return TaskInstance(
            id=self.id,
            task_master_id=self.task_master_id,
            title=self.title,
            description=self.description,
            plant_id=self.plant_id,
            assigned_to=self.assigned_to,
            assigned_by=self.assigned_by,
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            instructions=self.instructions,
            tags=self.tags or [],
            scheduled_date=self.scheduled_date,
            due_date=self.due_date,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.PENDING),
            completed_at=self.completed_at,
            notes=self.notes,
            estimated_duration=self.estimated_duration,
            actual_duration=self.actual_duration,
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, instance):
        """Create database model from Pydantic model."""
        return cls(
            id=instance.id,
            task_master_id=instance.task_master_id,
            title=instance.title,
            description=instance.description,
            plant_id=instance.plant_id,
            assigned_to=instance.assigned_to,
            assigned_by=instance.assigned_by,
            priority=enum_to_value(instance.priority),
            instructions=instance.instructions,
            tags=list(instance.tags or []),
            scheduled_date=instance.scheduled_date,
            due_date=instance.due_date,
            status=enum_to_value(instance.status),
            completed_at=instance.completed_at,
            notes=instance.notes,
            estimated_duration=instance.estimated_duration,
            actual_duration=instance.actual_duration,
            created_by=instance.created_by,
            created_at=instance.created_at,
            updated_at=instance.updated_at,
        )


class PlantDB(Base):
    """Database model for Plant."""

    __tablename__ = "plants"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    # Stored upper-case; immutable after creation
    code = Column(String, nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dms.models.plant import Plant
        return Plant(
            id=self.id,
            name=self.name,
            code=self.code,
            is_active=self.is_active,
            address=self.address,
            city=self.city,
            state=self.state,
            country=self.country,
            postal_code=self.postal_code,
            contact_person=self.contact_person,
            contact_email=self.contact_email,
            contact_phone=self.contact_phone,
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, plant):
        """Create database model from Pydantic model."""
        return cls(
            id=plant.id,
            name=plant.name,
            code=plant.code,
            is_active=plant.is_active,
            address=plant.address,
            city=plant.city,
            state=plant.state,
            country=plant.country,
            postal_code=plant.postal_code,
            contact_person=plant.contact_person,
            contact_email=plant.contact_email,
            contact_phone=plant.contact_phone,
            created_by=plant.created_by,
            created_at=plant.created_at,
            updated_at=plant.updated_at,
        )


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    # Primary key (identity provider uid)
    id = Column(String, primary_key=True)

    # Profile
    email = Column(String, nullable=False, unique=True)
    display_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.EMPLOYEE.value, index=True)
    module_permissions = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)

    # Employee record
    employee_id = Column(String, nullable=True)
    plant = Column(String, nullable=True, index=True)
    department = Column(String, nullable=True)
    designation = Column(String, nullable=True)
    contact_no = Column(String, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dms.models.user import User
        return User(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            role=value_to_enum(self.role, UserRole, UserRole.GUEST),
            module_permissions=self.module_permissions or {},
            is_active=self.is_active,
            employee_id=self.employee_id,
            plant=self.plant,
            department=self.department,
            designation=self.designation,
            contact_no=self.contact_no,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=enum_to_value(user.role),
            module_permissions=permissions_to_json(user.module_permissions),
            is_active=user.is_active,
            employee_id=user.employee_id,
            plant=user.plant,
            department=user.department,
            designation=user.designation,
            contact_no=user.contact_no,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AppSettingsDB(Base):
    """Singleton row holding branding settings."""

    __tablename__ = "app_settings"

    # Always "global"
    id = Column(String, primary_key=True, default="global")

    company_logo_url = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    app_name_short = Column(String, nullable=True)
    app_name_long = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from dms.models.app_settings import AppSettings
        return AppSettings(
            company_logo_url=self.company_logo_url,
            company_name=self.company_name,
            app_name_short=self.app_name_short,
            app_name_long=self.app_name_long,
            updated_by=self.updated_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
