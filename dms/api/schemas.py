"""Request/response models and envelopes for the DMS API."""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from dms.models.constants import DEFAULT_PAGE_SIZE


class LoginRequest(BaseModel):
    """Request model for exchanging an identity-provider ID token."""

    id_token: str = Field(..., min_length=1, description="ID token issued by the identity provider")

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


class AuthResponse(BaseModel):
    """Response model for authentication."""

    access_token: str
    token_type: str = "bearer"
    user: dict

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


class GenerateResponse(BaseModel):
    """Outcome of a generation run."""

    generated: int
    errors: int
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


def data_envelope(data: Any) -> dict:
    """Success envelope: {"data": ...}."""
    return {"data": _dump(data)}


def page_envelope(items: List[Any], *, page: int, limit: Optional[int], total: int) -> dict:
    """List envelope with pagination metadata."""
    limit = limit or DEFAULT_PAGE_SIZE
    pagination = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total else 0,
    )
    return {"data": _dump(items), "pagination": _dump(pagination)}


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
