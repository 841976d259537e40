"""Wishlist endpoints for signed-in students."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.feature_gate import require_feature
from app.core.logging import get_logger
from app.db import get_db
from app.db.models import Product, User, WishlistItem
from app.schemas.auth import MessageResponse
from app.schemas.product import ProductResponse
from app.schemas.wishlist import (
    WishlistAddResponse,
    WishlistCheckResponse,
    WishlistEntryResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


async def _find_entry(db: AsyncSession, user_id: str, product_id: str) -> WishlistItem | None:
    result = await db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        )
    )
    return result.scalar_one_or_none()


@router.get("", response_model=list[WishlistEntryResponse])
async def get_wishlist(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[WishlistEntryResponse]:
    """List the caller's saved listings that are still active, newest first."""
    result = await db.execute(
        select(WishlistItem)
        .join(Product, WishlistItem.product_id == Product.id)
        .where(WishlistItem.user_id == user.id, Product.is_active.is_(True))
        .order_by(WishlistItem.created_at.desc())
    )
    return [
        WishlistEntryResponse(
            id=entry.id,
            added_at=entry.created_at,
            product=ProductResponse.from_product(entry.product),
        )
        for entry in result.scalars().all()
    ]


@router.get("/check/{product_id}", response_model=WishlistCheckResponse)
async def check_wishlist(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WishlistCheckResponse:
    """Check whether a listing is on the caller's wishlist."""
    entry = await _find_entry(db, user.id, product_id)
    return WishlistCheckResponse(in_wishlist=entry is not None)


@router.post(
    "/{product_id}",
    response_model=WishlistAddResponse,
    status_code=201,
    dependencies=[Depends(require_feature("wishlist_enabled"))],
)
async def add_to_wishlist(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WishlistAddResponse:
    """Save an active listing."""
    result = await db.execute(
        select(Product.id).where(Product.id == product_id, Product.is_active.is_(True))
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Product not found")

    if await _find_entry(db, user.id, product_id) is not None:
        raise HTTPException(status_code=400, detail="Product already in wishlist")

    entry = WishlistItem(user_id=user.id, product_id=product_id)
    db.add(entry)
    await db.commit()

    logger.info("wishlist_added", user_id=user.id, product_id=product_id)
    return WishlistAddResponse(id=entry.id)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_feature("wishlist_enabled"))],
)
async def remove_from_wishlist(
    product_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Remove a listing from the caller's wishlist."""
    await db.execute(
        delete(WishlistItem).where(
            WishlistItem.user_id == user.id,
            WishlistItem.product_id == product_id,
        )
    )
    await db.commit()
    return MessageResponse(message="Removed from wishlist")
