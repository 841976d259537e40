"""Pydantic schemas for wishlist endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.product import ProductResponse


class WishlistEntryResponse(BaseModel):
    """A saved listing and when it was saved."""

    id: str
    added_at: datetime
    product: ProductResponse


class WishlistCheckResponse(BaseModel):
    in_wishlist: bool = Field(serialization_alias="inWishlist")


class WishlistAddResponse(BaseModel):
    id: str
    message: str = "Added to wishlist"
