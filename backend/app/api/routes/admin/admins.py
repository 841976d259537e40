"""Admin API routes for managing console accounts (super admins only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, require_super_admin
from app.db import get_db
from app.db.models import Admin
from app.schemas.admin import (
    ActionResponse,
    AdminCreate,
    AdminCreatedResponse,
    AdminListResponse,
    AdminUpdate,
)
from app.schemas.auth import AdminResponse
from app.services.admins import AdminAccountError, AdminAccountService
from app.services.audit import AuditLogService

router = APIRouter(
    prefix="/admins",
    tags=["admin-accounts"],
    dependencies=[Depends(require_super_admin)],
)


@router.get("", response_model=AdminListResponse)
async def list_admins(db: AsyncSession = Depends(get_db)) -> AdminListResponse:
    admins = await AdminAccountService(db).list_admins()
    return AdminListResponse(admins=[AdminResponse.model_validate(a) for a in admins])


@router.get("/{admin_id}", response_model=AdminResponse)
async def get_admin(admin_id: str, db: AsyncSession = Depends(get_db)) -> AdminResponse:
    try:
        admin = await AdminAccountService(db).get_admin(admin_id)
    except AdminAccountError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AdminResponse.model_validate(admin)


@router.post("", response_model=AdminCreatedResponse, status_code=201)
async def create_admin(
    request: AdminCreate,
    http_request: Request,
    actor: Admin = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminCreatedResponse:
    """Create a console account."""
    try:
        admin = await AdminAccountService(db).create_admin(
            request.email, request.password, request.full_name, request.role
        )
    except AdminAccountError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        actor.id,
        "create_admin",
        entity_type="admin",
        entity_id=admin.id,
        detail={"email": admin.email, "role": admin.role.value},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return AdminCreatedResponse(id=admin.id)


@router.put("/{admin_id}", response_model=ActionResponse)
async def update_admin(
    admin_id: str,
    request: AdminUpdate,
    http_request: Request,
    actor: Admin = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Change an account's name, role or active flag."""
    try:
        _, changes = await AdminAccountService(db).update_admin(
            admin_id,
            acting_admin_id=actor.id,
            full_name=request.full_name,
            role=request.role,
            is_active=request.is_active,
        )
    except AdminAccountError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        actor.id,
        "update_admin",
        entity_type="admin",
        entity_id=admin_id,
        detail={"updates": changes},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Admin updated successfully")


@router.delete("/{admin_id}", response_model=ActionResponse)
async def delete_admin(
    admin_id: str,
    http_request: Request,
    actor: Admin = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    try:
        email = await AdminAccountService(db).delete_admin(admin_id, acting_admin_id=actor.id)
    except AdminAccountError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        actor.id,
        "delete_admin",
        entity_type="admin",
        entity_id=admin_id,
        detail={"email": email},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Admin deleted successfully")
