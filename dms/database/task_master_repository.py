"""Repository for TaskMaster database operations."""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from dms.database.models import TaskMasterDB, enum_to_value
from dms.models.task_master import TaskMaster, TaskType

logger = logging.getLogger(__name__)


class TaskMasterRepository:
    """Repository for TaskMaster database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, master: TaskMaster, commit: bool = True) -> TaskMaster:
        """Create a new task master.

        With commit=False the row is only flushed so the caller can add more rows
        to the same transaction.
        """
        try:
            master_db = TaskMasterDB.from_pydantic(master)
            self.db.add(master_db)
            if commit:
                self.db.commit()
                self.db.refresh(master_db)
            else:
                self.db.flush()
            logger.debug(f"Created task master {master.id}: {master.title[:50]}")
            return master_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task master {master.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, master_id: str) -> Optional[TaskMaster]:
        """Get task master by ID."""
        master_db = self.db.query(TaskMasterDB).filter(TaskMasterDB.id == master_id).first()
        return master_db.to_pydantic() if master_db else None

    def list(
        self,
        *,
        plant_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        assigned_by: Optional[str] = None,
        frequency: Optional[str] = None,
        is_active: Optional[bool] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[TaskMaster], int]:
        """List task masters (newest first) with the total count before paging."""
        query = self.db.query(TaskMasterDB)
        if plant_id:
            query = query.filter(TaskMasterDB.plant_id == plant_id)
        if assigned_to:
            query = query.filter(TaskMasterDB.assigned_to == assigned_to)
        if assigned_by:
            query = query.filter(TaskMasterDB.assigned_by == assigned_by)
        if frequency:
            query = query.filter(TaskMasterDB.frequency == enum_to_value(frequency))
        if is_active is not None:
            query = query.filter(TaskMasterDB.is_active.is_(is_active))

        total = query.count()
        query = query.order_by(desc(TaskMasterDB.created_at)).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_pydantic() for row in query.all()], total

    def list_generation_candidates(self, today: date) -> List[TaskMaster]:
        """Active recurring masters whose start date has been reached."""
        rows = self.db.query(TaskMasterDB).filter(
            TaskMasterDB.is_active.is_(True),
            TaskMasterDB.task_type == TaskType.RECURRING.value,
            TaskMasterDB.start_date <= today,
        ).order_by(TaskMasterDB.created_at).all()
        return [row.to_pydantic() for row in rows]

    def update(self, master: TaskMaster) -> TaskMaster:
        """Persist every mutable field of an existing task master."""
        master_db = self.db.query(TaskMasterDB).filter(TaskMasterDB.id == master.id).first()
        if not master_db:
            raise ValueError(f"Task master {master.id} not found")

        master_db.title = master.title
        master_db.description = master.description
        master_db.plant_id = master.plant_id
        master_db.assigned_to = master.assigned_to
        master_db.assigned_by = master.assigned_by
        master_db.priority = enum_to_value(master.priority)
        master_db.frequency = enum_to_value(master.frequency)
        master_db.frequency_value = master.frequency_value
        master_db.frequency_unit = enum_to_value(master.frequency_unit) if master.frequency_unit else None
        master_db.start_date = master.start_date
        master_db.is_active = master.is_active
        master_db.estimated_duration = master.estimated_duration
        master_db.instructions = master.instructions
        master_db.tags = list(master.tags or [])
        master_db.last_generated = master.last_generated
        master_db.last_occurrence_date = master.last_occurrence_date
        master_db.updated_at = master.updated_at

        try:
            self.db.commit()
            self.db.refresh(master_db)
            logger.debug(f"Updated task master {master.id}: {master.title[:50]}")
            return master_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task master {master.id}: {type(e).__name__}: {str(e)}")
            raise

    def mark_generated(self, master_id: str, *, last_generated: datetime, last_occurrence_date: date) -> None:
        """Record the most recent expansion of a master."""
        master_db = self.db.query(TaskMasterDB).filter(TaskMasterDB.id == master_id).first()
        if not master_db:
            raise ValueError(f"Task master {master_id} not found")
        try:
            master_db.last_generated = last_generated
            master_db.last_occurrence_date = last_occurrence_date
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark task master {master_id} generated: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, master_id: str) -> bool:
        """Hard-delete a task master. Its instances are kept with a null master reference."""
        master_db = self.db.query(TaskMasterDB).filter(TaskMasterDB.id == master_id).first()
        if not master_db:
            return False

        try:
            self.db.delete(master_db)
            self.db.commit()
            logger.debug(f"Deleted task master {master_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task master {master_id}: {type(e).__name__}: {str(e)}")
            raise
