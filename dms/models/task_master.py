"""Task master data model for DMS.

A task master is the template that defines what work recurs, who does it and how often.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from dms.models.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_INSTRUCTIONS_LENGTH,
    MAX_TITLE_LENGTH,
    MIN_ESTIMATED_DURATION_MIN,
)


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskFrequency(str, Enum):
    """How often a task master produces instances."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class FrequencyUnit(str, Enum):
    """Unit of a custom frequency."""
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class TaskType(str, Enum):
    """Discriminates recurring templates from one-time tasks."""
    RECURRING = "recurring"
    ONE_TIME = "one-time"


def _strip_required(value: str, field_name: str) -> str:
    stripped = value.strip() if isinstance(value, str) else value
    if not stripped:
        raise ValueError(f"{field_name} is required")
    return stripped


class TaskMaster(BaseModel):
    """Canonical TaskMaster model."""

    id: str = Field(..., description="Unique task master identifier (UUID v4)")
    title: str = Field(..., description="Task title")
    description: str = Field(..., description="Task description")
    plant_id: str = Field(..., description="Plant the work belongs to (derived from the assignee)")
    assigned_to: str = Field(..., description="User ID of the employee doing the work")
    assigned_by: str = Field(..., description="User ID of the manager/admin who assigned it")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    frequency: TaskFrequency = Field(..., description="Recurrence frequency")
    frequency_value: Optional[int] = Field(None, ge=1, description="Custom frequency: every N units")
    frequency_unit: Optional[FrequencyUnit] = Field(None, description="Custom frequency unit")
    start_date: date = Field(..., description="First date on which instances may be generated")
    is_active: bool = Field(True, description="Whether generation is enabled")
    task_type: TaskType = Field(TaskType.RECURRING, description="Recurring template or one-time task")
    estimated_duration: int = Field(..., ge=MIN_ESTIMATED_DURATION_MIN, description="Estimated duration in minutes")
    instructions: Optional[str] = Field(None, description="Detailed instructions for the task")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    last_generated: Optional[datetime] = Field(None, description="Timestamp of the most recent expansion")
    last_occurrence_date: Optional[date] = Field(
        None, description="Scheduled date of the most recently generated occurrence"
    )
    created_by: str = Field(..., description="User ID who created the master")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @property
    def is_one_time(self) -> bool:
        return self.task_type == TaskType.ONE_TIME


class TaskMasterCreate(BaseModel):
    """Request model for creating a task master."""

    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    description: str = Field(..., max_length=MAX_DESCRIPTION_LENGTH)
    plant_id: Optional[str] = Field(None, description="Optional; must match the plant derived from the assignee")
    assigned_to: str
    assigned_by: Optional[str] = Field(None, description="Defaults to the authenticated user")
    priority: TaskPriority = TaskPriority.MEDIUM
    frequency: TaskFrequency
    frequency_value: Optional[int] = Field(None, ge=1)
    frequency_unit: Optional[FrequencyUnit] = None
    start_date: date
    estimated_duration: int = Field(..., ge=MIN_ESTIMATED_DURATION_MIN)
    instructions: Optional[str] = Field(None, max_length=MAX_INSTRUCTIONS_LENGTH)
    tags: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("title", "description", "assigned_to")
    @classmethod
    def _validate_required_text(cls, v, info):
        return _strip_required(v, to_camel(info.field_name))

    @field_validator("instructions")
    @classmethod
    def _validate_instructions(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def _validate_custom_frequency(self):
        if self.frequency == TaskFrequency.CUSTOM:
            if self.frequency_value is None or self.frequency_unit is None:
                raise ValueError("frequencyValue and frequencyUnit are required for custom frequency")
        else:
            # Only meaningful for custom frequency
            self.frequency_value = None
            self.frequency_unit = None
        return self


class OneTimeTaskCreate(TaskMasterCreate):
    """Request model for a one-time task (a non-recurring master plus its single instance)."""

    frequency: TaskFrequency = TaskFrequency.DAILY
    start_date: Optional[date] = None
    scheduled_date: date
    due_date: date

    @model_validator(mode="after")
    def _validate_dates(self):
        if self.due_date < self.scheduled_date:
            raise ValueError("dueDate must be on or after scheduledDate")
        if self.start_date is None:
            self.start_date = self.scheduled_date
        return self


class TaskMasterUpdate(BaseModel):
    """Request model for a partial task master update (omitted fields are left unchanged)."""

    title: Optional[str] = Field(None, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    plant_id: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: Optional[TaskPriority] = None
    frequency: Optional[TaskFrequency] = None
    frequency_value: Optional[int] = Field(None, ge=1)
    frequency_unit: Optional[FrequencyUnit] = None
    start_date: Optional[date] = None
    is_active: Optional[bool] = None
    estimated_duration: Optional[int] = Field(None, ge=MIN_ESTIMATED_DURATION_MIN)
    instructions: Optional[str] = Field(None, max_length=MAX_INSTRUCTIONS_LENGTH)
    tags: Optional[List[str]] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("title", "description", "assigned_to")
    @classmethod
    def _validate_text(cls, v, info):
        if v is None:
            return None
        return _strip_required(v, to_camel(info.field_name))

    @field_validator("instructions")
    @classmethod
    def _validate_instructions(cls, v):
        if v is None:
            return None
        return v.strip() or None
