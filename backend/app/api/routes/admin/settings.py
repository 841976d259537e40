"""Admin API routes for system settings and feature flags."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from app.api.deps import get_client_ip, get_current_admin, get_settings_service, require_admin
from app.core.logging import get_logger
from app.db.models import Admin
from app.schemas.settings import (
    AllSettingsResponse,
    BulkSettingsUpdate,
    BulkUpdateResponse,
    EmergencyShutdownResponse,
    MaintenanceToggleResponse,
    PublicStatusResponse,
    SettingResponse,
    SettingUpdate,
    SettingUpdateResponse,
)
from app.services.settings import (
    SettingNotFoundError,
    SettingsService,
    SettingsValidationError,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["admin-settings"])


@router.get("/public/status", response_model=PublicStatusResponse)
async def get_public_status(
    service: SettingsService = Depends(get_settings_service),
) -> PublicStatusResponse:
    """Get every public feature flag in one response.

    Unauthenticated. Falls back to the all-enabled defaults on any failure.
    """
    try:
        return PublicStatusResponse(**await service.public_status())
    except (ValidationError, TypeError) as e:
        logger.warning("public_status_failed_open", error=str(e))
        return PublicStatusResponse()


@router.get("", response_model=AllSettingsResponse)
async def get_all_settings(
    admin: Admin = Depends(get_current_admin),
    service: SettingsService = Depends(get_settings_service),
) -> AllSettingsResponse:
    """Get all settings grouped by category, read live from the database."""
    grouped = await service.get_all_settings()
    return AllSettingsResponse(
        settings={
            category: [SettingResponse(**row) for row in rows]
            for category, rows in grouped.items()
        }
    )


@router.put("/bulk", response_model=BulkUpdateResponse)
async def update_settings_bulk(
    request: BulkSettingsUpdate,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service),
) -> BulkUpdateResponse:
    """Update several settings at once.

    Unknown keys and values that do not fit their type are skipped and
    listed in ``skipped``; the rest are applied.
    """
    if not request.settings:
        raise HTTPException(status_code=400, detail="Settings array required")

    outcome = await service.update_settings_bulk(
        [(entry.key, entry.value) for entry in request.settings],
        actor_id=admin.id,
        source_ip=get_client_ip(http_request),
    )

    return BulkUpdateResponse(
        message=f"Updated {len(outcome.updates)} settings",
        updates=outcome.updates,
        skipped=outcome.skipped,
    )


@router.post("/maintenance/toggle", response_model=MaintenanceToggleResponse)
async def toggle_maintenance(
    http_request: Request,
    admin: Admin = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service),
) -> MaintenanceToggleResponse:
    """Flip maintenance mode."""
    enabled = await service.toggle_maintenance(
        actor_id=admin.id, source_ip=get_client_ip(http_request)
    )

    return MaintenanceToggleResponse(
        maintenance_mode=enabled,
        message=f"Maintenance mode {'enabled' if enabled else 'disabled'}",
    )


@router.post("/emergency/shutdown", response_model=EmergencyShutdownResponse)
async def emergency_shutdown(
    http_request: Request,
    admin: Admin = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service),
) -> EmergencyShutdownResponse:
    """Disable all public APIs and enable maintenance mode."""
    state = await service.emergency_shutdown(
        actor_id=admin.id, source_ip=get_client_ip(http_request)
    )

    return EmergencyShutdownResponse(**state)


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(
    key: str,
    admin: Admin = Depends(get_current_admin),
    service: SettingsService = Depends(get_settings_service),
) -> SettingResponse:
    """Get a single setting with its decoded value."""
    try:
        row = await service.get_setting_row(key)
    except SettingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return SettingResponse(**row)


@router.put("/{key}", response_model=SettingUpdateResponse)
async def update_setting(
    key: str,
    request: SettingUpdate,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service),
) -> SettingUpdateResponse:
    """Update a setting.

    The value is coerced to the setting's declared type before it is stored.
    """
    try:
        value = await service.update_setting(
            key,
            request.value,
            actor_id=admin.id,
            source_ip=get_client_ip(http_request),
        )
    except SettingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SettingsValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return SettingUpdateResponse(key=key, value=value)
