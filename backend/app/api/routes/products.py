"""Public listing endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user, get_settings_service
from app.api.feature_gate import require_feature
from app.core.logging import get_logger
from app.db import get_db
from app.db.models import User
from app.schemas.auth import MessageResponse
from app.schemas.product import (
    ProductCreate,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProductToggleResponse,
    ProductUpdate,
)
from app.services.products import ProductError, ProductService
from app.services.settings import SettingsService

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _product_exception(e: ProductError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: str | None = Query(None, description="Filter by category"),
    college: str | None = Query(None, description="Filter by college"),
    search: str | None = Query(None, description="Search title, description and category"),
    sort: Literal["recent", "price-low", "price-high", "popular"] = Query("recent"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str | None = Query(None, alias="userId", description="Listings of one seller"),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> ProductListResponse:
    """List active listings; sellers asking for their own also see inactive ones."""
    service = ProductService(db)
    products, total = await service.list_products(
        viewer=viewer,
        category=category,
        college=college,
        search=search,
        sort=sort,
        limit=limit,
        offset=offset,
        user_id=user_id,
    )
    return ProductListResponse(
        products=[ProductResponse.from_product(p) for p in products],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(
    product_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> ProductDetailResponse:
    """Get one listing and count the view.

    Seller contact details are only included for signed-in callers.
    """
    service = ProductService(db)
    try:
        product = await service.get_product(product_id)
    except ProductError as e:
        raise _product_exception(e) from e

    await service.record_view(product, viewer)
    await db.commit()

    contact = {}
    if viewer is not None and product.owner is not None:
        profile = product.owner.profile
        contact = {
            "seller_phone": profile.phone if profile else None,
            "seller_email": product.owner.email,
        }
    return ProductDetailResponse.from_product(product, **contact)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=201,
    dependencies=[Depends(require_feature("product_creation_enabled"))],
)
async def create_product(
    request: ProductCreate,
    user: User = Depends(get_current_user),
    settings_service: SettingsService = Depends(get_settings_service),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    """Create a listing."""
    service = ProductService(db, settings_service)
    try:
        product = await service.create_product(user, request.model_dump())
    except ProductError as e:
        raise _product_exception(e) from e

    await db.commit()
    return ProductResponse.from_product(product)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_feature("product_editing_enabled"))],
)
async def update_product(
    product_id: str,
    request: ProductUpdate,
    user: User = Depends(get_current_user),
    settings_service: SettingsService = Depends(get_settings_service),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    """Replace a listing's details (owner only)."""
    service = ProductService(db, settings_service)
    try:
        product = await service.update_product(product_id, user, request.model_dump())
    except ProductError as e:
        raise _product_exception(e) from e

    await db.commit()
    return ProductResponse.from_product(product)


@router.patch("/{product_id}/toggle", response_model=ProductToggleResponse)
async def toggle_product(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProductToggleResponse:
    """Show or hide one of the caller's listings."""
    service = ProductService(db)
    try:
        is_active = await service.toggle_product(product_id, user)
    except ProductError as e:
        raise _product_exception(e) from e

    await db.commit()
    return ProductToggleResponse(is_active=is_active)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete one of the caller's listings."""
    service = ProductService(db)
    try:
        await service.delete_product(product_id, user)
    except ProductError as e:
        raise _product_exception(e) from e

    await db.commit()
    return MessageResponse(message="Product deleted successfully")
