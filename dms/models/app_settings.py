"""Application branding settings for DMS."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class AppSettings(BaseModel):
    """Singleton branding settings."""

    company_logo_url: Optional[str] = None
    company_name: Optional[str] = None
    app_name_short: Optional[str] = Field(None, description="Short app name, e.g. 'DMS'")
    app_name_long: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


class AppSettingsUpdate(BaseModel):
    """Request model for updating settings.

    Omitted fields are left unchanged; null or empty strings clear a field.
    """

    company_logo_url: Optional[str] = Field(None, max_length=2048)
    company_name: Optional[str] = Field(None, max_length=255)
    app_name_short: Optional[str] = Field(None, max_length=50)
    app_name_long: Optional[str] = Field(None, max_length=255)

    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("company_logo_url", "company_name", "app_name_short", "app_name_long")
    @classmethod
    def _empty_to_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None
