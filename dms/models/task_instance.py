"""Task instance data model for DMS."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from dms.models.constants import MAX_NOTES_LENGTH
from dms.models.task_master import TaskPriority


class TaskStatus(str, Enum):
    """Task instance status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskInstance(BaseModel):
    """One concrete, dated occurrence of work.

    Title, description, plant, assignee, priority, instructions and estimated duration
    are copied from the master when the instance is created.
    """

    id: str = Field(..., description="Unique task instance identifier (UUID v4)")
    task_master_id: Optional[str] = Field(None, description="Originating task master (null once the master is deleted)")
    title: str
    description: str
    plant_id: str
    assigned_to: str
    assigned_by: str
    priority: TaskPriority = TaskPriority.MEDIUM
    instructions: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    scheduled_date: date = Field(..., description="When the work should be performed")
    due_date: date = Field(..., description="When the work is due")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Lifecycle status")
    completed_at: Optional[datetime] = Field(None, description="Set on transition to completed")
    notes: Optional[str] = None
    estimated_duration: int = Field(..., description="Estimated duration in minutes")
    actual_duration: Optional[int] = Field(None, description="Actual time taken in minutes")
    created_by: str = Field(..., description="User ID, or 'system' for generated instances")
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True


class TaskInstanceCreate(BaseModel):
    """Request model for creating an instance directly from a master."""

    task_master_id: str = Field(..., min_length=1)
    scheduled_date: date
    due_date: date

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True

    @model_validator(mode="after")
    def _validate_dates(self):
        if self.due_date < self.scheduled_date:
            raise ValueError("dueDate must be on or after scheduledDate")
        return self


class TaskInstanceUpdate(BaseModel):
    """Request model for a status/progress update."""

    status: Optional[TaskStatus] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    actual_duration: Optional[int] = Field(None, ge=0)
    completed_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True
