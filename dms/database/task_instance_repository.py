"""Repository for TaskInstance database operations."""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from dms.database.models import TaskInstanceDB, enum_to_value
from dms.models.task_instance import TaskInstance

logger = logging.getLogger(__name__)


class TaskInstanceRepository:
    """Repository for TaskInstance database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, instance: TaskInstance, commit: bool = True) -> TaskInstance:
        """Create a new task instance.

        Raises:
            sqlalchemy.exc.IntegrityError: if an instance already exists for the
                same master and scheduled date
        """
        try:
            instance_db = TaskInstanceDB.from_pydantic(instance)
            self.db.add(instance_db)
            if commit:
                self.db.commit()
                self.db.refresh(instance_db)
            else:
                self.db.flush()
            logger.debug(f"Created task instance {instance.id} for {instance.scheduled_date}: {instance.title[:50]}")
            return instance_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task instance {instance.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, instance_id: str) -> Optional[TaskInstance]:
        """Get task instance by ID."""
        instance_db = self.db.query(TaskInstanceDB).filter(TaskInstanceDB.id == instance_id).first()
        return instance_db.to_pydantic() if instance_db else None

    def exists_for_occurrence(self, task_master_id: str, scheduled_date: date) -> bool:
        """Whether the master already has an instance on that date."""
        row = self.db.query(TaskInstanceDB.id).filter(
            TaskInstanceDB.task_master_id == task_master_id,
            TaskInstanceDB.scheduled_date == scheduled_date,
        ).first()
        return row is not None

    def list(
        self,
        *,
        task_master_id: Optional[str] = None,
        plant_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        scheduled_from: Optional[date] = None,
        scheduled_to: Optional[date] = None,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[TaskInstance], int]:
        """List task instances (latest scheduled first) with the total count before paging."""
        query = self.db.query(TaskInstanceDB)
        if task_master_id:
            query = query.filter(TaskInstanceDB.task_master_id == task_master_id)
        if plant_id:
            query = query.filter(TaskInstanceDB.plant_id == plant_id)
        if assigned_to:
            query = query.filter(TaskInstanceDB.assigned_to == assigned_to)
        if status:
            query = query.filter(TaskInstanceDB.status == enum_to_value(status))
        if priority:
            query = query.filter(TaskInstanceDB.priority == enum_to_value(priority))
        if scheduled_from:
            query = query.filter(TaskInstanceDB.scheduled_date >= scheduled_from)
        if scheduled_to:
            query = query.filter(TaskInstanceDB.scheduled_date <= scheduled_to)
        if due_from:
            query = query.filter(TaskInstanceDB.due_date >= due_from)
        if due_to:
            query = query.filter(TaskInstanceDB.due_date <= due_to)

        total = query.count()
        query = query.order_by(desc(TaskInstanceDB.scheduled_date), desc(TaskInstanceDB.created_at)).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_pydantic() for row in query.all()], total

    def update(self, instance: TaskInstance) -> TaskInstance:
        """Persist status and progress fields of an existing instance."""
        instance_db = self.db.query(TaskInstanceDB).filter(TaskInstanceDB.id == instance.id).first()
        if not instance_db:
            raise ValueError(f"Task instance {instance.id} not found")

        instance_db.status = enum_to_value(instance.status)
        instance_db.completed_at = instance.completed_at
        instance_db.notes = instance.notes
        instance_db.actual_duration = instance.actual_duration
        instance_db.updated_at = instance.updated_at

        try:
            self.db.commit()
            self.db.refresh(instance_db)
            logger.debug(f"Updated task instance {instance.id}: status={instance_db.status}")
            return instance_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task instance {instance.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, instance_id: str) -> bool:
        """Delete a task instance by ID."""
        instance_db = self.db.query(TaskInstanceDB).filter(TaskInstanceDB.id == instance_id).first()
        if not instance_db:
            return False

        try:
            self.db.delete(instance_db)
            self.db.commit()
            logger.debug(f"Deleted task instance {instance_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task instance {instance_id}: {type(e).__name__}: {str(e)}")
            raise
