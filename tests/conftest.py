"""Pytest fixtures and configuration for DMS tests."""

import os

# Keep the app's own engine in memory; must be set before dms modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from dms.database.database import Base, get_db
from dms.database.plant_repository import PlantRepository
from dms.database.task_instance_repository import TaskInstanceRepository
from dms.database.task_master_repository import TaskMasterRepository
from dms.database.user_repository import UserRepository
from dms.engine.permissions import default_permissions_for_role
from dms.models.plant import Plant
from dms.models.task_factory import create_task_master
from dms.models.task_master import TaskMasterCreate, TaskType
from dms.models.user import User, UserRole


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test,
    with foreign keys enforced so ON DELETE SET NULL applies.
    """
    from dms.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def make_user(user_id: str, role: UserRole, plant=None, email=None, **overrides) -> User:
    """Build a User with the role's default permissions."""
    now = datetime.utcnow()
    data = {
        "id": user_id,
        "email": email or f"{user_id}@example.com",
        "display_name": user_id.replace("-", " ").title(),
        "role": role,
        "module_permissions": default_permissions_for_role(role),
        "plant": plant,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return User(**data)


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def plant_repository(db_session: Session):
    return PlantRepository(db_session)


@pytest.fixture
def task_master_repository(db_session: Session):
    return TaskMasterRepository(db_session)


@pytest.fixture
def task_instance_repository(db_session: Session):
    return TaskInstanceRepository(db_session)


@pytest.fixture
def plant(plant_repository):
    """The Pune plant (code PUN)."""
    now = datetime.utcnow()
    return plant_repository.create(
        Plant(id="plant-pun", name="Pune Works", code="PUN", created_at=now, updated_at=now)
    )


@pytest.fixture
def admin_user(user_repository):
    return user_repository.create(make_user("admin-1", UserRole.ADMIN))


@pytest.fixture
def manager_user(user_repository, plant):
    return user_repository.create(make_user("manager-1", UserRole.MANAGER, plant="Pune Works"))


@pytest.fixture
def employee_user(user_repository, plant):
    """Employee whose plant text matches the Pune plant by code (case-insensitive)."""
    return user_repository.create(make_user("employee-1", UserRole.EMPLOYEE, plant=" pun "))


@pytest.fixture
def other_employee(user_repository, plant):
    return user_repository.create(make_user("employee-2", UserRole.EMPLOYEE, plant="PUN"))


@pytest.fixture
def master_data(employee_user):
    """Base task master request data that can be overridden."""
    return {
        "title": "Check boiler pressure",
        "description": "Read the gauge and log the value",
        "assigned_to": employee_user.id,
        "frequency": "daily",
        "start_date": date(2024, 1, 1),
        "estimated_duration": 15,
    }


@pytest.fixture
def master_factory(task_master_repository, master_data, plant, admin_user):
    """Persist task masters for the employee; keyword overrides go into the create request."""

    def _make(task_type: TaskType = TaskType.RECURRING, **overrides):
        request = TaskMasterCreate(**{**master_data, **overrides})
        master = create_task_master(
            request,
            plant_id=plant.id,
            assigned_by=admin_user.id,
            created_by=admin_user.id,
            task_type=task_type,
        )
        return task_master_repository.create(master)

    return _make


@pytest.fixture
def auth_state(admin_user):
    """The user the test client authenticates as; tests may swap it."""
    return {"user": admin_user}


@pytest.fixture
def test_client(db_session: Session, auth_state):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from dms.api.app import app
    from dms.auth.dependencies import get_current_user

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    def override_get_current_user():
        return auth_state["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def raw_client(db_session: Session):
    """Test client with real bearer-token authentication (only the database is overridden)."""
    from dms.api.app import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
