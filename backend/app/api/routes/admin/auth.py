"""Admin console authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, get_current_admin
from app.core.logging import get_logger
from app.db import get_db
from app.db.models import Admin
from app.schemas.auth import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminResponse,
    ChangePasswordRequest,
    MessageResponse,
)
from app.services.audit import AuditLogService
from app.services.auth import AuthError, AuthService, create_admin_token

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["admin-auth"])


@router.post("/login", response_model=AdminLoginResponse)
async def login(
    request: AdminLoginRequest,
    http_request: Request,
    db: AsyncSession = Depends(get_db),
) -> AdminLoginResponse:
    """Sign an admin in and issue a console token."""
    service = AuthService(db)
    try:
        admin = await service.login_admin(request.email, request.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "login",
        entity_type="admin",
        entity_id=admin.id,
        detail={"email": admin.email},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()

    logger.info("admin_logged_in", admin_id=admin.id)
    return AdminLoginResponse(
        admin=AdminResponse.model_validate(admin),
        access_token=create_admin_token(admin.id, admin.role.value),
    )


@router.get("/me", response_model=AdminResponse)
async def get_me(admin: Admin = Depends(get_current_admin)) -> AdminResponse:
    """Get the signed-in admin."""
    return AdminResponse.model_validate(admin)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    http_request: Request,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Record the logout. Tokens are discarded client-side."""
    await AuditLogService(db).record(
        admin.id,
        "logout",
        entity_type="admin",
        entity_id=admin.id,
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return MessageResponse(message="Logged out successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    http_request: Request,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Change the signed-in admin's password."""
    service = AuthService(db)
    try:
        await service.change_admin_password(
            admin, request.current_password, request.new_password
        )
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "password_change",
        entity_type="admin",
        entity_id=admin.id,
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return MessageResponse(message="Password changed successfully")
