"""Unit tests for the repositories."""

import pytest
from datetime import date, datetime
from sqlalchemy.exc import IntegrityError

from dms.models.app_settings import AppSettingsUpdate
from dms.models.plant import Plant
from dms.models.task_factory import create_instance_from_master
from dms.database.app_settings_repository import AppSettingsRepository


class TestTaskMasterRepository:
    def test_create_and_get(self, master_factory, task_master_repository):
        master = master_factory(frequency="custom", frequency_value=2, frequency_unit="weeks", tags=["ppe"])

        retrieved = task_master_repository.get(master.id)
        assert retrieved is not None
        assert retrieved.frequency == "custom"
        assert retrieved.frequency_value == 2
        assert retrieved.frequency_unit == "weeks"
        assert retrieved.tags == ["ppe"]
        assert retrieved.task_type == "recurring"
        assert retrieved.is_active is True

    def test_get_nonexistent(self, task_master_repository):
        assert task_master_repository.get("missing") is None

    def test_list_filters_and_total(self, master_factory, task_master_repository, plant):
        master_factory(title="A", frequency="daily")
        master_factory(title="B", frequency="weekly")
        master_factory(title="C", frequency="weekly")

        items, total = task_master_repository.list(frequency="weekly")
        assert total == 2
        assert {m.title for m in items} == {"B", "C"}

        items, total = task_master_repository.list(plant_id=plant.id, limit=1)
        assert total == 3
        assert len(items) == 1

    def test_update(self, master_factory, task_master_repository):
        master = master_factory()
        updated = task_master_repository.update(
            master.model_copy(update={"title": "Renamed", "is_active": False, "updated_at": datetime.utcnow()})
        )
        assert updated.title == "Renamed"
        assert updated.is_active is False

        items, total = task_master_repository.list(is_active=False)
        assert total == 1

    def test_generation_candidates(self, master_factory, task_master_repository):
        due = master_factory(title="due", start_date=date(2024, 1, 1))
        master_factory(title="future", start_date=date(2024, 5, 1))
        paused = master_factory(title="paused")
        task_master_repository.update(paused.model_copy(update={"is_active": False}))

        candidates = task_master_repository.list_generation_candidates(date(2024, 1, 2))
        assert [m.id for m in candidates] == [due.id]

    def test_delete(self, master_factory, task_master_repository):
        master = master_factory()
        assert task_master_repository.delete(master.id) is True
        assert task_master_repository.get(master.id) is None
        assert task_master_repository.delete(master.id) is False


class TestTaskInstanceRepository:
    def test_unique_occurrence_per_master(self, master_factory, task_instance_repository):
        master = master_factory()
        task_instance_repository.create(create_instance_from_master(master, date(2024, 1, 1), date(2024, 1, 1)))
        assert task_instance_repository.exists_for_occurrence(master.id, date(2024, 1, 1))
        assert not task_instance_repository.exists_for_occurrence(master.id, date(2024, 1, 2))

        with pytest.raises(IntegrityError):
            task_instance_repository.create(
                create_instance_from_master(master, date(2024, 1, 1), date(2024, 1, 3))
            )

        # Session is usable after the failed insert
        task_instance_repository.create(create_instance_from_master(master, date(2024, 1, 2), date(2024, 1, 2)))
        items, total = task_instance_repository.list(task_master_id=master.id)
        assert total == 2

    def test_list_filters(self, master_factory, task_instance_repository):
        master = master_factory()
        for day in (1, 2, 3, 4):
            task_instance_repository.create(
                create_instance_from_master(master, date(2024, 1, day), date(2024, 1, day + 1))
            )

        items, total = task_instance_repository.list(
            scheduled_from=date(2024, 1, 2), scheduled_to=date(2024, 1, 3)
        )
        assert total == 2
        # Latest scheduled first
        assert [i.scheduled_date for i in items] == [date(2024, 1, 3), date(2024, 1, 2)]

        items, total = task_instance_repository.list(due_to=date(2024, 1, 3))
        assert total == 2

        items, total = task_instance_repository.list(status="pending", assigned_to=master.assigned_to)
        assert total == 4

        items, total = task_instance_repository.list(status="completed")
        assert total == 0

    def test_update_status_fields(self, master_factory, task_instance_repository):
        master = master_factory()
        instance = task_instance_repository.create(
            create_instance_from_master(master, date(2024, 1, 1), date(2024, 1, 1))
        )
        finished = datetime(2024, 1, 1, 15, 0)
        updated = task_instance_repository.update(
            instance.model_copy(update={
                "status": "completed",
                "completed_at": finished,
                "notes": "done",
                "actual_duration": 25,
            })
        )
        assert updated.status == "completed"
        assert updated.completed_at == finished
        assert updated.notes == "done"
        assert updated.actual_duration == 25


class TestPlantRepository:
    def test_get_by_code_is_case_insensitive(self, plant, plant_repository):
        assert plant_repository.get_by_code(" pun ").id == plant.id
        assert plant_repository.get_by_code("XYZ") is None

    def test_code_is_unique(self, plant, plant_repository):
        now = datetime.utcnow()
        with pytest.raises(IntegrityError):
            plant_repository.create(Plant(id="dup", name="Other", code="PUN", created_at=now, updated_at=now))

    def test_list_active_only(self, plant, plant_repository):
        now = datetime.utcnow()
        plant_repository.create(
            Plant(id="p-old", name="Old Site", code="OLD", is_active=False, created_at=now, updated_at=now)
        )
        assert len(plant_repository.list()) == 2
        assert [p.id for p in plant_repository.list(active_only=True)] == [plant.id]

    def test_in_use_by_code_or_name(self, plant, plant_repository, user_repository, manager_user):
        # manager_user has plant text "Pune Works" (the name)
        assert plant_repository.is_in_use(plant) is True

    def test_not_in_use(self, plant, plant_repository):
        assert plant_repository.is_in_use(plant) is False


class TestUserRepository:
    def test_get_by_email_normalizes(self, employee_user, user_repository):
        assert user_repository.get_by_email(" Employee-1@Example.com ").id == employee_user.id

    def test_permissions_round_trip(self, manager_user, user_repository):
        stored = user_repository.get(manager_user.id)
        assert stored.module_permissions["employeeTaskManager"] == ["read", "write"]

    def test_list_total(self, admin_user, employee_user, user_repository):
        items, total = user_repository.list(limit=1)
        assert total == 2
        assert len(items) == 1


class TestAppSettingsRepository:
    def test_defaults_before_first_update(self, db_session):
        settings = AppSettingsRepository(db_session).get()
        assert settings.company_name is None
        assert settings.app_name_short is None

    def test_partial_updates(self, db_session):
        repo = AppSettingsRepository(db_session)
        repo.update(AppSettingsUpdate(company_name="Acme Forge", app_name_short="DMS"), updated_by="admin-1")
        settings = repo.update(AppSettingsUpdate(company_name=""), updated_by="admin-2")

        assert settings.company_name is None
        assert settings.app_name_short == "DMS"
        assert settings.updated_by == "admin-2"
