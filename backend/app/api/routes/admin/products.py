"""Admin API routes for listing moderation."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, get_current_admin, require_admin, require_moderator
from app.db import get_db
from app.db.models import Admin
from app.schemas.admin import (
    ActionResponse,
    AdminProductList,
    AdminProductRow,
    CategoryCount,
    FlagRequest,
    Pagination,
    ProductVisibilityResponse,
)
from app.services.audit import AuditLogService
from app.services.moderation import ModerationError, ProductModerationService

router = APIRouter(prefix="/products", tags=["admin-products"])


@router.get("", response_model=AdminProductList)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    search: str | None = Query(None),
    category: str | None = Query(None),
    status: Literal["active", "inactive", "flagged", "all"] | None = Query(None),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminProductList:
    """List all listings, including hidden and flagged ones."""
    products, total = await ProductModerationService(db).list_products(
        page=page, limit=limit, search=search, category=category, status=status
    )
    return AdminProductList(
        products=[AdminProductRow.from_product(product) for product in products],
        pagination=Pagination.build(total, page, limit),
    )


@router.get("/meta/categories", response_model=list[CategoryCount])
async def list_categories(
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryCount]:
    """Get listing counts per category."""
    categories = await ProductModerationService(db).list_categories()
    return [CategoryCount(category=category, count=count) for category, count in categories]


@router.get("/{product_id}", response_model=AdminProductRow)
async def get_product(
    product_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminProductRow:
    try:
        product = await ProductModerationService(db).get_product(product_id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return AdminProductRow.from_product(product)


@router.patch("/{product_id}/toggle", response_model=ProductVisibilityResponse)
async def toggle_product(
    product_id: str,
    http_request: Request,
    admin: Admin = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> ProductVisibilityResponse:
    """Show a hidden listing or hide a visible one."""
    try:
        product = await ProductModerationService(db).toggle_visibility(product_id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "show_product" if product.is_active else "hide_product",
        entity_type="product",
        entity_id=product_id,
        detail={"title": product.title},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ProductVisibilityResponse(
        message=f"Product {'activated' if product.is_active else 'deactivated'} successfully",
        is_active=product.is_active,
    )


@router.post("/{product_id}/flag", response_model=ActionResponse)
async def flag_product(
    product_id: str,
    request: FlagRequest,
    http_request: Request,
    admin: Admin = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Flag a listing for review."""
    try:
        product = await ProductModerationService(db).flag(product_id, request.reason)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "flag_product",
        entity_type="product",
        entity_id=product_id,
        detail={"reason": request.reason, "title": product.title},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Product flagged successfully")


@router.post("/{product_id}/unflag", response_model=ActionResponse)
async def unflag_product(
    product_id: str,
    http_request: Request,
    admin: Admin = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Clear a listing's flag."""
    try:
        product = await ProductModerationService(db).unflag(product_id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "unflag_product",
        entity_type="product",
        entity_id=product_id,
        detail={"title": product.title},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Product unflagged successfully")


@router.delete("/{product_id}", response_model=ActionResponse)
async def delete_product(
    product_id: str,
    http_request: Request,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Delete a listing with its wishlist entries and reports."""
    service = ProductModerationService(db)
    try:
        product = await service.get_product(product_id)
        title, owner_id = product.title, product.user_id
        await service.delete(product_id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "delete_product",
        entity_type="product",
        entity_id=product_id,
        detail={"title": title, "user_id": owner_id},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Product deleted successfully")
