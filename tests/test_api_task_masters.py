"""Integration tests for the task master endpoints.

These tests verify API endpoints work correctly end-to-end.
"""

from datetime import datetime

from dms.models.plant import Plant

BASE = "/api/v1/task-masters"


def _create_master(test_client, **overrides):
    payload = {
        "title": "Calibrate scales",
        "description": "Use the reference weights",
        "assignedTo": "employee-1",
        "frequency": "weekly",
        "startDate": "2024-01-01",
        "estimatedDuration": 30,
    }
    payload.update(overrides)
    return test_client.post(BASE, json=payload)


class TestCreateTaskMaster:
    """Test POST /task-masters."""

    def test_create_derives_plant_from_assignee(self, test_client, employee_user, plant):
        response = _create_master(test_client, instructions="  Zero the scale first  ", tags=["qa"])

        assert response.status_code == 201
        master = response.json()["data"]
        assert master["plantId"] == plant.id
        assert master["assignedTo"] == employee_user.id
        assert master["assignedBy"] == "admin-1"
        assert master["createdBy"] == "admin-1"
        assert master["isActive"] is True
        assert master["taskType"] == "recurring"
        assert master["priority"] == "medium"
        assert master["instructions"] == "Zero the scale first"
        assert master["tags"] == ["qa"]
        assert master["frequencyValue"] is None

    def test_custom_frequency_requires_value_and_unit(self, test_client, employee_user):
        response = _create_master(test_client, frequency="custom", frequencyValue=3)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert isinstance(error["details"], list)

    def test_custom_frequency(self, test_client, employee_user):
        response = _create_master(test_client, frequency="custom", frequencyValue=3, frequencyUnit="days")
        assert response.status_code == 201
        master = response.json()["data"]
        assert master["frequencyValue"] == 3
        assert master["frequencyUnit"] == "days"

    def test_named_frequency_drops_custom_fields(self, test_client, employee_user):
        response = _create_master(test_client, frequency="daily", frequencyValue=3, frequencyUnit="days")
        master = response.json()["data"]
        assert master["frequencyValue"] is None
        assert master["frequencyUnit"] is None

    def test_missing_required_fields(self, test_client, employee_user):
        response = test_client.post(BASE, json={"title": "Only a title"})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["error"]["details"]}
        assert {"description", "assignedTo", "frequency", "startDate", "estimatedDuration"} <= fields

    def test_blank_title_rejected(self, test_client, employee_user):
        assert _create_master(test_client, title="   ").status_code == 400

    def test_non_positive_duration_rejected(self, test_client, employee_user):
        assert _create_master(test_client, estimatedDuration=0).status_code == 400

    def test_unknown_assignee(self, test_client):
        response = _create_master(test_client, assignedTo="nobody")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ASSIGNEE_NOT_FOUND"

    def test_assignee_without_plant(self, test_client, admin_user, plant):
        response = _create_master(test_client, assignedTo=admin_user.id)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EMPLOYEE_HAS_NO_PLANT"

    def test_assignee_plant_not_matched(self, test_client, user_repository, plant):
        from dms.models.user import User

        now = datetime.utcnow()
        user_repository.create(User(
            id="employee-x", email="x@example.com", display_name="X", plant="Atlantis",
            created_at=now, updated_at=now,
        ))
        response = _create_master(test_client, assignedTo="employee-x")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLANT_NOT_MATCHED"

    def test_inactive_plant_is_not_matched(self, test_client, employee_user, plant):
        assert test_client.put(f"/api/v1/plants/{plant.id}", json={"isActive": False}).status_code == 200

        response = _create_master(test_client)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLANT_NOT_MATCHED"

    def test_explicit_plant_must_match_assignee(self, test_client, employee_user, plant_repository):
        now = datetime.utcnow()
        other = plant_repository.create(
            Plant(id="plant-chn", name="Chennai", code="CHN", created_at=now, updated_at=now)
        )
        response = _create_master(test_client, plantId=other.id)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLANT_MISMATCH"

        response = _create_master(test_client, plantId="plant-pun")
        assert response.status_code == 201

    def test_employee_cannot_create(self, test_client, employee_user, auth_state):
        auth_state["user"] = employee_user
        response = _create_master(test_client)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_manager_can_create(self, test_client, employee_user, manager_user, auth_state):
        auth_state["user"] = manager_user
        response = _create_master(test_client)
        assert response.status_code == 201
        assert response.json()["data"]["assignedBy"] == manager_user.id


class TestOneTimeTask:
    """Test POST /task-masters/one-time."""

    def test_creates_inactive_master_and_single_instance(self, test_client, employee_user):
        response = test_client.post(f"{BASE}/one-time", json={
            "title": "Replace filter",
            "description": "Filter on line 2",
            "assignedTo": employee_user.id,
            "scheduledDate": "2024-02-01",
            "dueDate": "2024-02-01",
            "estimatedDuration": 10,
        })

        assert response.status_code == 201
        data = response.json()["data"]
        master, instance = data["taskMaster"], data["taskInstance"]
        assert master["isActive"] is False
        assert master["taskType"] == "one-time"
        assert master["startDate"] == "2024-02-01"
        assert instance["taskMasterId"] == master["id"]
        assert instance["scheduledDate"] == "2024-02-01"
        assert instance["status"] == "pending"

        # Never expanded by generation
        generated = test_client.post("/api/v1/task-instances/generate").json()["data"]
        assert generated["generated"] == 0

        listed = test_client.get("/api/v1/task-instances", params={"taskMasterId": master["id"]}).json()
        assert listed["pagination"]["total"] == 1

    def test_due_before_scheduled_rejected(self, test_client, employee_user):
        response = test_client.post(f"{BASE}/one-time", json={
            "title": "Replace filter",
            "description": "Filter on line 2",
            "assignedTo": employee_user.id,
            "scheduledDate": "2024-02-05",
            "dueDate": "2024-02-01",
            "estimatedDuration": 10,
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_one_time_master_cannot_be_activated(self, test_client, employee_user):
        created = test_client.post(f"{BASE}/one-time", json={
            "title": "Replace filter",
            "description": "Filter on line 2",
            "assignedTo": employee_user.id,
            "scheduledDate": "2024-02-01",
            "dueDate": "2024-02-03",
            "estimatedDuration": 10,
        }).json()["data"]["taskMaster"]

        response = test_client.put(f"{BASE}/{created['id']}", json={"isActive": True})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ONE_TIME_NOT_RECURRING"


class TestListAndGet:
    def test_list_with_filters_and_pagination(self, test_client, employee_user):
        _create_master(test_client, title="A", frequency="daily")
        _create_master(test_client, title="B")
        _create_master(test_client, title="C")

        response = test_client.get(BASE, params={"frequency": "weekly", "limit": 1})
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}

        body = test_client.get(BASE, params={"isActive": "false"}).json()
        assert body["pagination"]["total"] == 0

    def test_limit_is_capped(self, test_client):
        response = test_client.get(BASE, params={"limit": 500})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_get_by_id(self, test_client, employee_user):
        master_id = _create_master(test_client).json()["data"]["id"]
        response = test_client.get(f"{BASE}/{master_id}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == master_id

    def test_get_missing(self, test_client):
        response = test_client.get(f"{BASE}/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_employee_can_read(self, test_client, employee_user, auth_state):
        _create_master(test_client)
        auth_state["user"] = employee_user
        assert test_client.get(BASE).json()["pagination"]["total"] == 1


class TestUpdateTaskMaster:
    def test_partial_update(self, test_client, employee_user):
        master = _create_master(test_client).json()["data"]

        response = test_client.put(f"{BASE}/{master['id']}", json={"title": "Calibrate all scales", "priority": "high"})
        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["title"] == "Calibrate all scales"
        assert updated["priority"] == "high"
        assert updated["description"] == master["description"]

    def test_switch_to_custom_requires_value_and_unit(self, test_client, employee_user):
        master = _create_master(test_client).json()["data"]

        response = test_client.put(f"{BASE}/{master['id']}", json={"frequency": "custom"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        response = test_client.put(
            f"{BASE}/{master['id']}", json={"frequency": "custom", "frequencyValue": 2, "frequencyUnit": "months"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["frequencyUnit"] == "months"

    def test_reassign_rederives_plant(self, test_client, employee_user, other_employee, admin_user):
        master = _create_master(test_client).json()["data"]

        response = test_client.put(f"{BASE}/{master['id']}", json={"assignedTo": other_employee.id})
        assert response.status_code == 200
        assert response.json()["data"]["plantId"] == "plant-pun"

        response = test_client.put(f"{BASE}/{master['id']}", json={"assignedTo": admin_user.id})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EMPLOYEE_HAS_NO_PLANT"

    def test_pause_master(self, test_client, employee_user):
        master = _create_master(test_client).json()["data"]
        response = test_client.put(f"{BASE}/{master['id']}", json={"isActive": False})
        assert response.json()["data"]["isActive"] is False

        generated = test_client.post("/api/v1/task-instances/generate").json()["data"]
        assert generated["generated"] == 0

    def test_changing_start_date_resets_anchor(self, test_client, employee_user):
        master = _create_master(test_client, frequency="daily").json()["data"]
        test_client.post("/api/v1/task-instances/generate")
        assert test_client.get(f"{BASE}/{master['id']}").json()["data"]["lastOccurrenceDate"] is not None

        response = test_client.put(f"{BASE}/{master['id']}", json={"startDate": "2030-01-01"})
        assert response.status_code == 200
        assert response.json()["data"]["lastOccurrenceDate"] is None

    def test_null_tags_leave_tags_unchanged(self, test_client, employee_user):
        master = _create_master(test_client, tags=["qa", "weekly"]).json()["data"]

        response = test_client.put(f"{BASE}/{master['id']}", json={"tags": None})
        assert response.status_code == 200
        assert response.json()["data"]["tags"] == ["qa", "weekly"]

        response = test_client.put(f"{BASE}/{master['id']}", json={"tags": []})
        assert response.json()["data"]["tags"] == []

    def test_blank_instructions_are_cleared(self, test_client, employee_user):
        master = _create_master(test_client, instructions="Zero the scale first").json()["data"]
        assert master["instructions"] == "Zero the scale first"

        response = test_client.put(f"{BASE}/{master['id']}", json={"instructions": "   "})
        assert response.status_code == 200
        assert response.json()["data"]["instructions"] is None

    def test_update_missing(self, test_client):
        assert test_client.put(f"{BASE}/missing", json={"title": "x"}).status_code == 404


class TestDeleteTaskMaster:
    def test_delete_keeps_instances(self, test_client, employee_user):
        master = _create_master(test_client).json()["data"]
        instance = test_client.post("/api/v1/task-instances", json={
            "taskMasterId": master["id"],
            "scheduledDate": "2024-01-10",
            "dueDate": "2024-01-12",
        }).json()["data"]

        response = test_client.delete(f"{BASE}/{master['id']}")
        assert response.status_code == 200
        assert test_client.get(f"{BASE}/{master['id']}").status_code == 404

        orphan = test_client.get(f"/api/v1/task-instances/{instance['id']}").json()["data"]
        assert orphan["taskMasterId"] is None
        assert orphan["title"] == master["title"]

    def test_manager_cannot_delete(self, test_client, employee_user, manager_user, auth_state):
        master = _create_master(test_client).json()["data"]
        auth_state["user"] = manager_user
        response = test_client.delete(f"{BASE}/{master['id']}")
        assert response.status_code == 403
