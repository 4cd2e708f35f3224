"""Tests for expanding task masters into task instances."""

import pytest
from datetime import date
from unittest.mock import patch

from dms.database.task_instance_repository import TaskInstanceRepository
from dms.models.task_factory import create_instance_from_master, create_task_master
from dms.models.task_master import TaskType
from dms.recurrence.generate import generate_task_instances


def _instances_for(task_instance_repository, master_id):
    items, _ = task_instance_repository.list(task_master_id=master_id)
    return items


class TestGenerateTaskInstances:
    def test_daily_master_generates_once_per_day(self, db_session, master_factory, task_instance_repository):
        master = master_factory(frequency="daily", start_date=date(2024, 1, 1))

        result = generate_task_instances(db_session, today=date(2024, 1, 1))
        assert result.generated == 1
        assert result.errors == 0

        instances = _instances_for(task_instance_repository, master.id)
        assert len(instances) == 1
        assert instances[0].scheduled_date == date(2024, 1, 1)
        assert instances[0].due_date == date(2024, 1, 1)
        assert instances[0].status == "pending"
        assert instances[0].created_by == "system"

        again = generate_task_instances(db_session, today=date(2024, 1, 1))
        assert again.generated == 0
        assert len(_instances_for(task_instance_repository, master.id)) == 1

    def test_custom_frequency_waits_one_interval(self, db_session, master_factory, task_instance_repository):
        master = master_factory(
            frequency="custom", frequency_value=3, frequency_unit="days", start_date=date(2024, 1, 1)
        )

        assert generate_task_instances(db_session, today=date(2024, 1, 2)).generated == 0
        assert _instances_for(task_instance_repository, master.id) == []

        assert generate_task_instances(db_session, today=date(2024, 1, 4)).generated == 1
        instances = _instances_for(task_instance_repository, master.id)
        assert [i.scheduled_date for i in instances] == [date(2024, 1, 4)]
        assert instances[0].due_date == date(2024, 1, 7)

    def test_instance_copies_master_fields(self, db_session, master_factory, task_instance_repository):
        master = master_factory(priority="high", instructions="Wear gloves", tags=["safety"])
        generate_task_instances(db_session, today=date(2024, 1, 1))

        instance = _instances_for(task_instance_repository, master.id)[0]
        assert instance.title == master.title
        assert instance.description == master.description
        assert instance.plant_id == master.plant_id
        assert instance.assigned_to == master.assigned_to
        assert instance.assigned_by == master.assigned_by
        assert instance.priority == "high"
        assert instance.instructions == "Wear gloves"
        assert instance.tags == ["safety"]
        assert instance.estimated_duration == master.estimated_duration

    def test_missed_days_generate_only_latest(self, db_session, master_factory, task_instance_repository):
        master = master_factory(frequency="daily", start_date=date(2024, 1, 1))

        result = generate_task_instances(db_session, today=date(2024, 1, 5))
        assert result.generated == 1
        instances = _instances_for(task_instance_repository, master.id)
        assert [i.scheduled_date for i in instances] == [date(2024, 1, 5)]

        assert generate_task_instances(db_session, today=date(2024, 1, 6)).generated == 1
        assert len(_instances_for(task_instance_repository, master.id)) == 2

    def test_inactive_master_is_skipped(self, db_session, master_factory, task_master_repository, task_instance_repository):
        master = master_factory()
        task_master_repository.update(master.model_copy(update={"is_active": False}))

        assert generate_task_instances(db_session, today=date(2024, 1, 1)).generated == 0
        assert _instances_for(task_instance_repository, master.id) == []

    def test_future_start_date_is_skipped(self, db_session, master_factory):
        master_factory(start_date=date(2024, 6, 1))
        assert generate_task_instances(db_session, today=date(2024, 1, 1)).generated == 0

    def test_one_time_master_is_never_expanded(
        self, db_session, master_data, plant, admin_user, task_master_repository, task_instance_repository
    ):
        from dms.models.task_master import OneTimeTaskCreate

        request = OneTimeTaskCreate(
            **{**master_data, "scheduled_date": date(2024, 2, 1), "due_date": date(2024, 2, 1)}
        )
        master = create_task_master(
            request, plant_id=plant.id, assigned_by=admin_user.id, created_by=admin_user.id,
            task_type=TaskType.ONE_TIME,
        )
        master = task_master_repository.create(master, commit=False)
        task_instance_repository.create(create_instance_from_master(master, date(2024, 2, 1), date(2024, 2, 1)))

        assert master.is_active is False
        for today in (date(2024, 2, 1), date(2024, 3, 1), date(2025, 2, 1)):
            assert generate_task_instances(db_session, today=today).generated == 0
        assert len(_instances_for(task_instance_repository, master.id)) == 1

    def test_existing_occurrence_is_not_duplicated(
        self, db_session, master_factory, task_instance_repository, task_master_repository
    ):
        master = master_factory()
        task_instance_repository.create(create_instance_from_master(master, date(2024, 1, 1), date(2024, 1, 1)))

        result = generate_task_instances(db_session, today=date(2024, 1, 1))
        assert result.generated == 0
        assert result.errors == 0
        assert len(_instances_for(task_instance_repository, master.id)) == 1
        # The anchor still advances
        assert task_master_repository.get(master.id).last_occurrence_date == date(2024, 1, 1)

    def test_concurrent_insert_counts_as_already_generated(
        self, db_session, master_factory, task_instance_repository, task_master_repository
    ):
        master = master_factory()
        # Another run inserted the row after this run checked for it
        task_instance_repository.create(create_instance_from_master(master, date(2024, 1, 1), date(2024, 1, 1)))

        with patch.object(TaskInstanceRepository, "exists_for_occurrence", return_value=False):
            result = generate_task_instances(db_session, today=date(2024, 1, 1))

        assert result.generated == 0
        assert result.errors == 0
        assert len(_instances_for(task_instance_repository, master.id)) == 1
        assert task_master_repository.get(master.id).last_occurrence_date == date(2024, 1, 1)

    def test_records_last_generated(self, db_session, master_factory, task_master_repository):
        master = master_factory()
        generate_task_instances(db_session, today=date(2024, 1, 1))

        stored = task_master_repository.get(master.id)
        assert stored.last_generated is not None
        assert stored.last_occurrence_date == date(2024, 1, 1)

    def test_failure_of_one_master_does_not_abort_run(self, db_session, master_factory, task_instance_repository):
        first = master_factory(title="First")
        second = master_factory(title="Second")

        from dms.recurrence import generate as generate_module
        real = generate_module._generate_for_master

        def flaky(master, **kwargs):
            if master.id == first.id:
                raise RuntimeError("boom")
            return real(master, **kwargs)

        with patch.object(generate_module, "_generate_for_master", side_effect=flaky):
            result = generate_task_instances(db_session, today=date(2024, 1, 1))

        assert result.generated == 1
        assert result.errors == 1
        assert "1 error" in result.summary()
        assert len(_instances_for(task_instance_repository, second.id)) == 1

    def test_deleting_master_keeps_instances(
        self, db_session, master_factory, task_master_repository, task_instance_repository
    ):
        master = master_factory()
        result = generate_task_instances(db_session, today=date(2024, 1, 1))
        instance_id = result.instances[0].id

        assert task_master_repository.delete(master.id) is True
        db_session.expire_all()

        orphan = task_instance_repository.get(instance_id)
        assert orphan is not None
        assert orphan.task_master_id is None
        assert orphan.title == master.title


def test_instance_factory_rejects_due_before_scheduled(master_factory):
    master = master_factory()
    with pytest.raises(ValueError):
        create_instance_from_master(master, date(2024, 1, 5), date(2024, 1, 4))
