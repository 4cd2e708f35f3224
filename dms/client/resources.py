"""Typed resource wrappers over ApiClient.

Inputs are validated locally with the same models the server uses, so obviously
bad requests (missing fields, incomplete custom frequency, due date before the
scheduled date, non-positive duration) fail before any network call. Every
mutation invalidates the cached reads it can affect.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from dms.client.api import ApiClient
from dms.client.errors import ApiError, ClientValidationError
from dms.client.session import SessionContext
from dms.models.app_settings import AppSettings, AppSettingsUpdate
from dms.models.permissions import UserPermissionUpdate
from dms.models.plant import Plant, PlantCreate, PlantUpdate
from dms.models.task_instance import TaskInstance, TaskInstanceCreate, TaskInstanceUpdate
from dms.models.task_master import OneTimeTaskCreate, TaskMaster, TaskMasterCreate, TaskMasterUpdate
from dms.models.user import User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Page(Generic[M]):
    """One page of a paginated listing."""

    def __init__(self, items: List[M], page: int = 1, limit: int = 0, total: int = 0, total_pages: int = 0):
        self.items = items
        self.page = page
        self.limit = limit
        self.total = total
        self.total_pages = total_pages

    @classmethod
    def empty(cls) -> "Page":
        return cls([])

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


class GenerationSummary:
    """Outcome of a generation run as reported to the operator."""

    def __init__(self, generated: int, errors: int):
        self.generated = generated
        self.errors = errors

    @property
    def message(self) -> str:
        if self.errors:
            return f"Generated {self.generated} task instance(s); {self.errors} task master(s) failed"
        return f"Generated {self.generated} task instance(s)"


def _validated(model: Type[M], data: Union[M, Dict[str, Any]]) -> M:
    """Validate input locally, raising ClientValidationError with one entry per field."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        details = [
            {"field": ".".join(str(x) for x in err.get("loc", ())), "message": err.get("msg", "")}
            for err in e.errors()
        ]
        raise ClientValidationError("Invalid input", details) from e


def _payload(model: BaseModel, partial: bool = False) -> dict:
    if partial:
        return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _parse_page(body: Optional[dict], model: Type[M]) -> Page:
    if not body:
        return Page.empty()
    pagination = body.get("pagination") or {}
    return Page(
        [model.model_validate(item) for item in body.get("data", [])],
        page=pagination.get("page", 1),
        limit=pagination.get("limit", 0),
        total=pagination.get("total", 0),
        total_pages=pagination.get("totalPages", 0),
    )


class _Resource:
    path = ""

    def __init__(self, api: ApiClient):
        self.api = api

    def _get_one(self, path: str, model: Type[M]) -> Optional[M]:
        """Single read; a missing record is None rather than an error."""
        try:
            body = self.api.get(path)
        except ApiError as e:
            if e.status == 404:
                return None
            raise
        if not body or body.get("data") is None:
            return None
        return model.model_validate(body["data"])

    def _invalidate(self, *prefixes: str) -> None:
        for prefix in prefixes or (self.path,):
            self.api.cache.invalidate(prefix)


class UsersResource(_Resource):
    path = "/users"

    def list(self, page: int = 1, limit: Optional[int] = None) -> Page:
        return _parse_page(self.api.get(self.path, {"page": page, "limit": limit}), User)

    def me(self) -> Optional[User]:
        return self._get_one(f"{self.path}/me", User)

    def get(self, user_id: str) -> Optional[User]:
        return self._get_one(f"{self.path}/{user_id}", User)

    def create(self, data: Union[UserCreate, Dict[str, Any]]) -> User:
        request = _validated(UserCreate, data)
        body = self.api.post(self.path, json=_payload(request))
        self._invalidate()
        return User.model_validate(body["data"])

    def update(self, user_id: str, data: Union[UserUpdate, Dict[str, Any]]) -> User:
        request = _validated(UserUpdate, data)
        body = self.api.put(f"{self.path}/{user_id}", json=_payload(request, partial=True))
        self._invalidate()
        return User.model_validate(body["data"])

    def delete(self, user_id: str) -> None:
        self.api.delete(f"{self.path}/{user_id}")
        self._invalidate()

    def get_permissions(self, user_id: str) -> Optional[dict]:
        body = self.api.get(f"{self.path}/{user_id}/permissions")
        return body["data"] if body else None

    def update_permissions(self, user_id: str, module: str, permissions: List[str]) -> dict:
        request = _validated(UserPermissionUpdate, {"module": module, "permissions": permissions})
        body = self.api.put(f"{self.path}/{user_id}/permissions", json=_payload(request))
        self._invalidate()
        return body["data"]


class PlantsResource(_Resource):
    path = "/plants"

    def list(self, active_only: bool = False) -> List[Plant]:
        body = self.api.get(self.path, {"activeOnly": "true" if active_only else None})
        if not body:
            return []
        return [Plant.model_validate(item) for item in body.get("data", [])]

    def get(self, plant_id: str) -> Optional[Plant]:
        return self._get_one(f"{self.path}/{plant_id}", Plant)

    def create(self, data: Union[PlantCreate, Dict[str, Any]]) -> Plant:
        request = _validated(PlantCreate, data)
        body = self.api.post(self.path, json=_payload(request))
        self._invalidate()
        return Plant.model_validate(body["data"])

    def update(self, plant_id: str, data: Union[PlantUpdate, Dict[str, Any]]) -> Plant:
        request = _validated(PlantUpdate, data)
        body = self.api.put(f"{self.path}/{plant_id}", json=_payload(request, partial=True))
        self._invalidate()
        return Plant.model_validate(body["data"])

    def delete(self, plant_id: str) -> None:
        self.api.delete(f"{self.path}/{plant_id}")
        self._invalidate()


class TaskMastersResource(_Resource):
    path = "/task-masters"

    def list(self, page: int = 1, limit: Optional[int] = None, **filters) -> Page:
        """Filters: plantId, assignedTo, assignedBy, frequency, isActive."""
        params = {"page": page, "limit": limit, **filters}
        if isinstance(params.get("isActive"), bool):
            params["isActive"] = "true" if params["isActive"] else "false"
        return _parse_page(self.api.get(self.path, params), TaskMaster)

    def get(self, master_id: str) -> Optional[TaskMaster]:
        return self._get_one(f"{self.path}/{master_id}", TaskMaster)

    def create(self, data: Union[TaskMasterCreate, Dict[str, Any]]) -> TaskMaster:
        request = _validated(TaskMasterCreate, data)
        body = self.api.post(self.path, json=_payload(request))
        self._invalidate(self.path, TaskInstancesResource.path)
        return TaskMaster.model_validate(body["data"])

    def create_one_time(self, data: Union[OneTimeTaskCreate, Dict[str, Any]]) -> TaskInstance:
        """Create a one-time task and return its single instance."""
        request = _validated(OneTimeTaskCreate, data)
        body = self.api.post(f"{self.path}/one-time", json=_payload(request))
        self._invalidate(self.path, TaskInstancesResource.path)
        return TaskInstance.model_validate(body["data"]["taskInstance"])

    def update(self, master_id: str, data: Union[TaskMasterUpdate, Dict[str, Any]]) -> TaskMaster:
        request = _validated(TaskMasterUpdate, data)
        body = self.api.put(f"{self.path}/{master_id}", json=_payload(request, partial=True))
        self._invalidate(self.path, TaskInstancesResource.path)
        return TaskMaster.model_validate(body["data"])

    def delete(self, master_id: str) -> None:
        self.api.delete(f"{self.path}/{master_id}")
        self._invalidate(self.path, TaskInstancesResource.path)


class TaskInstancesResource(_Resource):
    path = "/task-instances"

    def list(self, page: int = 1, limit: Optional[int] = None, **filters) -> Page:
        """Filters: taskMasterId, plantId, assignedTo, status, priority and date ranges."""
        return _parse_page(self.api.get(self.path, {"page": page, "limit": limit, **filters}), TaskInstance)

    def my_tasks(self, page: int = 1, limit: Optional[int] = None, **filters) -> Page:
        """Instances assigned to the signed-in user; empty when signed out."""
        return _parse_page(
            self.api.get(f"{self.path}/my-tasks", {"page": page, "limit": limit, **filters}),
            TaskInstance,
        )

    def get(self, instance_id: str) -> Optional[TaskInstance]:
        return self._get_one(f"{self.path}/{instance_id}", TaskInstance)

    def create(self, data: Union[TaskInstanceCreate, Dict[str, Any]]) -> TaskInstance:
        request = _validated(TaskInstanceCreate, data)
        body = self.api.post(self.path, json=_payload(request))
        self._invalidate()
        return TaskInstance.model_validate(body["data"])

    def update(self, instance_id: str, data: Union[TaskInstanceUpdate, Dict[str, Any]]) -> TaskInstance:
        """Apply a status/progress update. Nothing is cached until the server confirms it."""
        request = _validated(TaskInstanceUpdate, data)
        try:
            body = self.api.put(f"{self.path}/{instance_id}", json=_payload(request, partial=True))
        finally:
            # A rejected update must not leave a stale read behind either
            self._invalidate()
        return TaskInstance.model_validate(body["data"])

    def delete(self, instance_id: str) -> None:
        self.api.delete(f"{self.path}/{instance_id}")
        self._invalidate()

    def generate(self) -> GenerationSummary:
        body = self.api.post(f"{self.path}/generate")
        self._invalidate(self.path, TaskMastersResource.path)
        data = body.get("data") or {}
        summary = GenerationSummary(int(data.get("generated", 0)), int(data.get("errors", 0)))
        logger.info(summary.message)
        return summary


class AppSettingsResource(_Resource):
    path = "/app-settings"

    def get(self) -> AppSettings:
        body = self.api.get(self.path)
        if not body or body.get("data") is None:
            return AppSettings()
        return AppSettings.model_validate(body["data"])

    def update(self, data: Union[AppSettingsUpdate, Dict[str, Any]]) -> AppSettings:
        request = _validated(AppSettingsUpdate, data)
        body = self.api.put(self.path, json=_payload(request, partial=True))
        self._invalidate()
        return AppSettings.model_validate(body["data"])


class DmsClient:
    """Entry point bundling the transport, session and resources."""

    def __init__(self, api: Optional[ApiClient] = None, session: Optional[SessionContext] = None, **api_kwargs):
        if api is None:
            api = ApiClient(session or SessionContext(), **api_kwargs)
        self.api = api
        self.session = api.session
        self.users = UsersResource(api)
        self.plants = PlantsResource(api)
        self.task_masters = TaskMastersResource(api)
        self.task_instances = TaskInstancesResource(api)
        self.app_settings = AppSettingsResource(api)

    def login(self, id_token: str) -> User:
        return User.model_validate(self.api.login(id_token))

    def logout(self) -> None:
        self.api.logout()

    def restore_selected_plant(self) -> Optional[str]:
        """Re-select the persisted plant if it is still active."""
        plants = self.plants.list(active_only=True)
        return self.session.restore_selected_plant(p.id for p in plants)
