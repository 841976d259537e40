"""Pydantic schemas for the system settings API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.services.settings import DEFAULT_MAINTENANCE_MESSAGE


class SettingResponse(BaseModel):
    """Admin view of a single setting with its decoded value."""

    id: str
    key: str = Field(description="Setting key")
    value: Any = Field(description="Decoded value (type varies)")
    type: str = Field(description="boolean, number, json or string")
    description: str | None = None
    category: str
    updated_at: datetime | None = Field(default=None, serialization_alias="updatedAt")
    updated_by: str | None = Field(default=None, serialization_alias="updatedBy")


class AllSettingsResponse(BaseModel):
    """Every setting grouped by category."""

    settings: dict[str, list[SettingResponse]]


class SettingUpdate(BaseModel):
    """Request to update a setting."""

    value: Any = Field(description="New value; coerced to the setting's type")


class SettingUpdateResponse(BaseModel):
    """Response after updating one setting."""

    key: str
    value: Any
    message: str = "Setting updated successfully"


class BulkSettingEntry(BaseModel):
    """One key/value pair of a bulk update."""

    key: str
    value: Any = None


class BulkSettingsUpdate(BaseModel):
    """Request to update several settings at once."""

    settings: list[BulkSettingEntry] = Field(default_factory=list)


class AppliedSetting(BaseModel):
    key: str
    value: Any


class SkippedSetting(BaseModel):
    key: str
    reason: str


class BulkUpdateResponse(BaseModel):
    """Applied entries plus the ones left out and why."""

    message: str
    updates: list[AppliedSetting]
    skipped: list[SkippedSetting] = Field(default_factory=list)


class MaintenanceToggleResponse(BaseModel):
    maintenance_mode: bool
    message: str


class EmergencyShutdownResponse(BaseModel):
    api_enabled: bool = False
    maintenance_mode: bool = True
    message: str = (
        "Emergency shutdown activated. All APIs disabled and maintenance mode enabled."
    )


class PublicStatusResponse(BaseModel):
    """Feature flags for client-side conditional rendering.

    Defaults are the fail-open values returned when the settings store is unreadable.
    """

    maintenance_mode: bool = False
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE
    registration_enabled: bool = True
    login_enabled: bool = True
    product_creation_enabled: bool = True
    product_editing_enabled: bool = True
    wishlist_enabled: bool = True
    api_enabled: bool = True
