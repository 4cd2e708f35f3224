"""Expand recurring task masters into concrete TaskInstance rows."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dms.database.task_instance_repository import TaskInstanceRepository
from dms.database.task_master_repository import TaskMasterRepository
from dms.models.task_factory import create_instance_from_master
from dms.models.task_instance import TaskInstance
from dms.models.task_master import TaskMaster
from dms.recurrence.frequency import due_date_for, due_occurrence

logger = logging.getLogger(__name__)


class GenerationResult:
    """Result of a generation run."""

    def __init__(self):
        self.generated: int = 0
        self.errors: int = 0
        self.instances: List[TaskInstance] = []

    def summary(self) -> str:
        if self.errors:
            return f"Generated {self.generated} task instance(s) with {self.errors} error(s)"
        return f"Generated {self.generated} task instance(s)"


def _generate_for_master(
    master: TaskMaster,
    *,
    master_repo: TaskMasterRepository,
    instance_repo: TaskInstanceRepository,
    today: date,
    now: datetime,
) -> Optional[TaskInstance]:
    """Materialize the due occurrence of one master, if any.

    Returns the created instance, or None when nothing was due or the occurrence
    already existed.
    """
    scheduled = due_occurrence(master, today)
    if scheduled is None:
        return None

    created: Optional[TaskInstance] = None
    if not instance_repo.exists_for_occurrence(master.id, scheduled):
        instance = create_instance_from_master(master, scheduled, due_date_for(master, scheduled))
        try:
            created = instance_repo.create(instance)
        except IntegrityError:
            # A concurrent run inserted the same (master, scheduled date) pair
            logger.info(f"Occurrence {scheduled} of task master {master.id} already generated")

    # Advance the anchor even when the occurrence already existed
    master_repo.mark_generated(master.id, last_generated=now, last_occurrence_date=scheduled)
    return created


def generate_task_instances(
    db: Session,
    *,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> GenerationResult:
    """Create the due instance for every active recurring task master.

    At most one instance exists per (master, scheduled date). A master that missed
    several periods gets only its latest due occurrence. Failures are counted per
    master and never abort the run.
    """
    now = now or datetime.utcnow()
    today = today or now.date()

    master_repo = TaskMasterRepository(db)
    instance_repo = TaskInstanceRepository(db)
    result = GenerationResult()

    for master in master_repo.list_generation_candidates(today):
        try:
            created = _generate_for_master(
                master,
                master_repo=master_repo,
                instance_repo=instance_repo,
                today=today,
                now=now,
            )
        except Exception as e:
            result.errors += 1
            logger.error(f"Failed to generate instance for task master {master.id}: {type(e).__name__}: {str(e)}")
            continue
        if created is not None:
            result.generated += 1
            result.instances.append(created)

    logger.info(f"Task instance generation finished: {result.generated} generated, {result.errors} errors")
    return result
