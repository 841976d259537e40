"""Pydantic schemas for marketplace listings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.db.models import Product, ProductCondition
from app.utils.text import sanitize_html, sanitize_text


class ProductCreate(BaseModel):
    """Request to create a listing."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: int = Field(ge=0, description="Price in whole currency units")
    category: str = Field(min_length=1, max_length=100)
    condition: ProductCondition
    negotiable: bool = False
    images: list[str] = Field(default_factory=list, description="Image URLs")
    college: str | None = None

    @field_validator("title", "category")
    @classmethod
    def strip_required_markup(cls, v: str) -> str:
        v = sanitize_text(v)
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("college")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        return sanitize_text(v) or None

    @field_validator("description")
    @classmethod
    def clean_description(cls, v: str | None) -> str | None:
        return sanitize_html(v) or None


class ProductUpdate(ProductCreate):
    """Request to replace a listing's details."""

    is_active: bool = True


class ProductResponse(BaseModel):
    """A listing with its seller's display details."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    price: int
    category: str
    condition: ProductCondition
    negotiable: bool
    images: list[str] = Field(default_factory=list)
    college: str | None = None
    is_active: bool
    is_flagged: bool = False
    view_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    seller_name: str | None = None
    seller_avatar: str | None = None
    seller_college: str | None = None

    @classmethod
    def from_product(cls, product: Product, **extra) -> ProductResponse:
        profile = product.owner.profile if product.owner else None
        return cls(
            id=product.id,
            user_id=product.user_id,
            title=product.title,
            description=product.description,
            price=product.price,
            category=product.category,
            condition=product.condition,
            negotiable=product.negotiable,
            images=product.images,
            college=product.college,
            is_active=product.is_active,
            is_flagged=product.is_flagged,
            view_count=product.view_count,
            created_at=product.created_at,
            updated_at=product.updated_at,
            seller_name=profile.full_name if profile else None,
            seller_avatar=profile.avatar_url if profile else None,
            seller_college=profile.college if profile else None,
            **extra,
        )


class ProductDetailResponse(ProductResponse):
    """Single listing; contact details only for signed-in callers."""

    seller_phone: str | None = None
    seller_email: str | None = None


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int
    limit: int
    offset: int


class ProductToggleResponse(BaseModel):
    is_active: bool
