"""Tests for token handling, login and bearer authentication."""

from datetime import datetime, timedelta
from unittest.mock import patch

import jwt

from dms.auth.jwt import JWT_ALGORITHM, JWT_SECRET_KEY, create_access_token, decode_access_token, get_user_id_from_token

LOGIN = "/api/v1/auth/login"


def _login(client, identity):
    with patch("dms.api.routes.auth.verify_identity_token", return_value=identity):
        return client.post(LOGIN, json={"idToken": "provider-token"})


class TestJwt:
    def test_round_trip(self):
        token = create_access_token("user-1", role="manager")
        payload = decode_access_token(token)
        assert payload["sub"] == "user-1"
        assert payload["role"] == "manager"
        assert get_user_id_from_token(token) == "user-1"

    def test_expired_token(self):
        past = datetime.utcnow() - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "user-1", "iat": past, "exp": past + timedelta(hours=1)},
            JWT_SECRET_KEY,
            algorithm=JWT_ALGORITHM,
        )
        assert decode_access_token(token) is None

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm="HS256")
        assert get_user_id_from_token(token) is None


class TestLogin:
    def test_existing_user_matched_by_email(self, raw_client, employee_user):
        response = _login(raw_client, {"id": "provider-uid", "email": "EMPLOYEE-1@example.com", "name": "E"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tokenType"] == "bearer"
        assert data["user"]["id"] == employee_user.id
        assert get_user_id_from_token(data["accessToken"]) == employee_user.id

    def test_unknown_user_becomes_guest(self, raw_client):
        response = _login(raw_client, {"id": "new-uid", "email": "visitor@example.com", "name": None})

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["id"] == "new-uid"
        assert user["role"] == "guest"
        assert user["displayName"] == "visitor"
        assert all(perms == [] for perms in user["modulePermissions"].values())

        token = response.json()["data"]["accessToken"]
        headers = {"Authorization": f"Bearer {token}"}
        assert raw_client.get("/api/v1/users/me", headers=headers).status_code == 200
        # Guests hold no module permissions
        response = raw_client.get("/api/v1/task-masters", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_invalid_identity_token(self, raw_client):
        response = _login(raw_client, None)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_disabled_account(self, raw_client, user_repository, employee_user):
        user_repository.update(employee_user.model_copy(update={"is_active": False}))
        response = _login(raw_client, {"id": employee_user.id, "email": employee_user.email, "name": "E"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ACCOUNT_DISABLED"

    def test_missing_id_token(self, raw_client):
        response = raw_client.post(LOGIN, json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestBearerAuthentication:
    def test_missing_token(self, raw_client):
        response = raw_client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_REQUIRED"

    def test_garbage_token(self, raw_client):
        response = raw_client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_token_for_unknown_user(self, raw_client):
        token = create_access_token("ghost")
        response = raw_client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "USER_NOT_SETUP"

    def test_disabled_user_token_rejected(self, raw_client, user_repository, manager_user):
        token = create_access_token(manager_user.id)
        user_repository.update(manager_user.model_copy(update={"is_active": False}))
        response = raw_client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ACCOUNT_DISABLED"

    def test_valid_token(self, raw_client, manager_user):
        token = create_access_token(manager_user.id)
        response = raw_client.get("/api/v1/task-masters", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 0
