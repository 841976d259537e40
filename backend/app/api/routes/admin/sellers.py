"""Admin API routes for seller oversight."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_admin
from app.db import get_db
from app.schemas.admin import (
    AdminProductList,
    AdminProductRow,
    Pagination,
    SellerDetail,
    SellerList,
    SellerRow,
)
from app.services.moderation import ProductModerationService
from app.services.sellers import DEFAULT_SELLER_SORT, SellerError, SellerService
from app.services.users import UserModerationError, UserModerationService

router = APIRouter(
    prefix="/sellers",
    tags=["admin-sellers"],
    dependencies=[Depends(get_current_admin)],
)

SellerSort = Literal[
    "products_count",
    "active_products",
    "total_views",
    "total_listing_value",
    "last_listing",
    "joined_at",
    "full_name",
]


@router.get("", response_model=SellerList)
async def list_sellers(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    search: str | None = Query(None),
    college: str | None = Query(None),
    sort: SellerSort = Query(DEFAULT_SELLER_SORT),
    order: Literal["asc", "desc"] = Query("desc"),
    db: AsyncSession = Depends(get_db),
) -> SellerList:
    """List students who have listed at least one product."""
    rows, total = await SellerService(db).list_sellers(
        page=page, limit=limit, search=search, college=college, sort=sort, order=order
    )
    return SellerList(
        sellers=[SellerRow(**row) for row in rows],
        pagination=Pagination.build(total, page, limit),
    )


@router.get("/{user_id}", response_model=SellerDetail)
async def get_seller(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> SellerDetail:
    """Get one seller's listing statistics and category breakdown."""
    try:
        seller = await SellerService(db).get_seller(user_id)
    except SellerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return SellerDetail(**seller)


@router.get("/{user_id}/products", response_model=AdminProductList)
async def list_seller_products(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    status: Literal["active", "inactive", "flagged", "all"] | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> AdminProductList:
    """List one seller's products, including hidden and flagged ones."""
    try:
        await UserModerationService(db).get_user(user_id)
    except UserModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    products, total = await ProductModerationService(db).list_products(
        page=page, limit=limit, status=status, user_id=user_id
    )
    return AdminProductList(
        products=[AdminProductRow.from_product(product) for product in products],
        pagination=Pagination.build(total, page, limit),
    )
