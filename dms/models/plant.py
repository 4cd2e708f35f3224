"""Plant (manufacturing facility) data model for DMS."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from dms.models.constants import MAX_PLANT_CODE_LENGTH


def normalize_plant_code(code: str) -> str:
    """Plant codes are stored trimmed and upper-case."""
    return code.strip().upper()


class Plant(BaseModel):
    """Canonical Plant model."""

    id: str = Field(..., description="Unique plant identifier (UUID v4)")
    name: str = Field(..., description="Plant name")
    code: str = Field(..., description="Unique upper-case plant code (immutable)")
    is_active: bool = Field(True, description="Whether the plant is in use")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


class PlantCreate(BaseModel):
    """Request model for creating a plant."""

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=MAX_PLANT_CODE_LENGTH)
    is_active: bool = True
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    contact_person: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=20)

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v):
        v = normalize_plant_code(v)
        if not v:
            raise ValueError("code is required")
        return v


class PlantUpdate(BaseModel):
    """Request model for updating a plant.

    `code` is accepted only so that an attempt to change it can be rejected explicitly.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=MAX_PLANT_CODE_LENGTH)
    is_active: Optional[bool] = None
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    contact_person: Optional[str] = Field(None, max_length=255)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=20)

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v):
        return normalize_plant_code(v) if v is not None else None
