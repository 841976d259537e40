"""Admin API routes for student account moderation."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, get_current_admin, require_admin
from app.db import get_db
from app.db.models import Admin
from app.schemas.admin import (
    ActionResponse,
    AdminUserDetail,
    AdminProductRow,
    AdminUserList,
    AdminUserRow,
    CollegeCount,
    OffsetPagination,
    Pagination,
    SuspendRequest,
    UserProductList,
    UserStatsResponse,
    UserUpdate,
)
from app.services.audit import AuditLogService
from app.services.moderation import ProductModerationService
from app.services.users import UserModerationError, UserModerationService, user_summary

router = APIRouter(prefix="/users", tags=["admin-users"])


@router.get("", response_model=AdminUserList)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    search: str | None = Query(None),
    college: str | None = Query(None),
    status: Literal["active", "suspended", "all"] | None = Query(None),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminUserList:
    """List student accounts with listing and wishlist counts."""
    rows, total = await UserModerationService(db).list_users(
        page=page, limit=limit, search=search, college=college, status=status
    )
    return AdminUserList(
        users=[AdminUserRow(**row) for row in rows],
        pagination=Pagination.build(total, page, limit),
    )


@router.get("/meta/colleges", response_model=list[CollegeCount])
async def list_colleges(
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CollegeCount]:
    """Get colleges that have at least one student."""
    colleges = await UserModerationService(db).list_colleges()
    return [CollegeCount(college=college, count=count) for college, count in colleges]


@router.get("/{user_id}", response_model=AdminUserDetail)
async def get_user(
    user_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminUserDetail:
    """Get one account with its activity counters."""
    service = UserModerationService(db)
    try:
        user = await service.get_user(user_id)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    stats = await service.get_stats(user_id)
    return AdminUserDetail(
        **user_summary(user, stats.products_count, stats.wishlist_count),
        stats=UserStatsResponse.model_validate(stats),
    )


@router.get("/{user_id}/products", response_model=UserProductList)
async def get_user_products(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> UserProductList:
    """Get every listing of one account, hidden ones included."""
    try:
        await UserModerationService(db).get_user(user_id)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    products, total = await ProductModerationService(db).list_products(
        limit=limit, offset=offset, user_id=user_id
    )
    return UserProductList(
        products=[AdminProductRow.from_product(product) for product in products],
        pagination=OffsetPagination(total=total, limit=limit, offset=offset),
    )


@router.put("/{user_id}", response_model=ActionResponse)
async def update_user(
    user_id: str,
    request: UserUpdate,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Correct the profile details of an account."""
    changes = request.model_dump(exclude_unset=True)
    try:
        await UserModerationService(db).update_user(user_id, changes)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "update_user",
        entity_type="user",
        entity_id=user_id,
        detail={"updates": changes},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="User updated successfully")


@router.post("/{user_id}/suspend", response_model=ActionResponse)
async def suspend_user(
    user_id: str,
    http_request: Request,
    request: SuspendRequest | None = None,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Suspend an account and hide its listings."""
    reason = request.reason if request else None
    try:
        await UserModerationService(db).suspend_user(user_id, reason)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "suspend_user",
        entity_type="user",
        entity_id=user_id,
        detail={"reason": reason},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="User suspended successfully")


@router.post("/{user_id}/activate", response_model=ActionResponse)
async def activate_user(
    user_id: str,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Lift a suspension."""
    try:
        await UserModerationService(db).activate_user(user_id)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "activate_user",
        entity_type="user",
        entity_id=user_id,
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="User activated successfully")


@router.delete("/{user_id}", response_model=ActionResponse)
async def delete_user(
    user_id: str,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Delete an account with its listings, wishlist and reports."""
    try:
        email = await UserModerationService(db).delete_user(user_id)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "delete_user",
        entity_type="user",
        entity_id=user_id,
        detail={"email": email},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="User deleted successfully")
