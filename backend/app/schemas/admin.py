"""Pydantic schemas for the admin console's moderation endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from app.db.models import AdminRole, Product, ReportReason, ReportStatus
from app.schemas.auth import AdminResponse
from app.utils.text import sanitize_text


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> Pagination:
        return cls(total=total, page=page, limit=limit, pages=(total + limit - 1) // limit)


class ActionResponse(BaseModel):
    message: str


# =============================================================================
# Users
# =============================================================================


class AdminUserRow(BaseModel):
    """A student account with profile details flattened in."""

    id: str
    email: str
    email_verified: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    last_sign_in: datetime | None = None
    is_suspended: bool = False
    suspended_at: datetime | None = None
    suspension_reason: str | None = None
    full_name: str | None = None
    college: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    products_count: int = 0
    wishlist_count: int = 0


class AdminUserList(BaseModel):
    users: list[AdminUserRow]
    pagination: Pagination


class UserStatsResponse(BaseModel):
    products_count: int = Field(serialization_alias="productsCount")
    active_products: int = Field(serialization_alias="activeProducts")
    total_views: int = Field(serialization_alias="totalViews")
    wishlist_count: int = Field(serialization_alias="wishlistCount")

    model_config = {"from_attributes": True}


class AdminUserDetail(AdminUserRow):
    stats: UserStatsResponse


class SuspendRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        return sanitize_text(v) or None


class UserUpdate(BaseModel):
    """Profile fields an admin may correct on a student account."""

    full_name: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("fullName", "full_name"),
    )
    college: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)

    @field_validator("full_name")
    @classmethod
    def clean_name(cls, v: str | None) -> str:
        v = sanitize_text(v)
        if not v:
            raise ValueError("Full name must not be empty")
        return v

    @field_validator("college", "phone")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        return sanitize_text(v) or None


class CollegeCount(BaseModel):
    college: str
    count: int


# =============================================================================
# Products
# =============================================================================


class AdminProductRow(BaseModel):
    """A listing as moderators see it, flag state included."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    price: int
    category: str
    condition: str
    negotiable: bool = False
    images: list[str] = Field(default_factory=list)
    college: str | None = None
    is_active: bool
    is_flagged: bool
    flagged_at: datetime | None = None
    flag_reason: str | None = None
    view_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    seller_name: str | None = None
    seller_email: str | None = None

    @classmethod
    def from_product(cls, product: Product) -> AdminProductRow:
        owner = product.owner
        profile = owner.profile if owner else None
        return cls(
            id=product.id,
            user_id=product.user_id,
            title=product.title,
            description=product.description,
            price=product.price,
            category=product.category,
            condition=product.condition.value,
            negotiable=product.negotiable,
            images=product.images,
            college=product.college,
            is_active=product.is_active,
            is_flagged=product.is_flagged,
            flagged_at=product.flagged_at,
            flag_reason=product.flag_reason,
            view_count=product.view_count,
            created_at=product.created_at,
            updated_at=product.updated_at,
            seller_name=profile.full_name if profile else None,
            seller_email=owner.email if owner else None,
        )


class AdminProductList(BaseModel):
    products: list[AdminProductRow]
    pagination: Pagination


class OffsetPagination(BaseModel):
    total: int
    limit: int
    offset: int


class UserProductList(BaseModel):
    products: list[AdminProductRow]
    pagination: OffsetPagination


class ProductVisibilityResponse(BaseModel):
    message: str
    is_active: bool


class FlagRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_markup(cls, v: str) -> str:
        v = sanitize_text(v)
        if not v:
            raise ValueError("Flag reason is required")
        return v


class CategoryCount(BaseModel):
    category: str
    count: int


# =============================================================================
# Sellers
# =============================================================================


class SellerRow(BaseModel):
    """A student with at least one listing, with listing totals."""

    id: str
    email: str
    joined_at: datetime
    last_sign_in: datetime | None = None
    is_suspended: bool = False
    full_name: str | None = None
    college: str | None = None
    avatar_url: str | None = None
    products_count: int = 0
    active_products: int = 0
    total_views: int = 0
    total_listing_value: int = 0
    first_listing: datetime | None = None
    last_listing: datetime | None = None


class SellerList(BaseModel):
    sellers: list[SellerRow]
    pagination: Pagination


class SellerStats(BaseModel):
    total_products: int = 0
    active_products: int = 0
    flagged_products: int = 0
    total_views: int = 0
    avg_views: float = 0.0
    total_listing_value: int = 0
    avg_price: float = 0.0
    wishlist_count: int = 0


class SellerDetail(BaseModel):
    id: str
    email: str
    joined_at: datetime
    last_sign_in: datetime | None = None
    is_suspended: bool = False
    suspension_reason: str | None = None
    full_name: str | None = None
    college: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    stats: SellerStats
    categories: list[CategoryCount] = Field(default_factory=list)


# =============================================================================
# Reports
# =============================================================================


class AdminReportRow(BaseModel):
    """A report with the names moderators need to triage it."""

    id: str
    product_id: str
    reporter_id: str
    reason: ReportReason
    description: str | None = None
    status: ReportStatus
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    product_title: str | None = None
    product_images: list[str] = Field(default_factory=list)
    product_is_active: bool | None = None
    reporter_name: str | None = None
    reporter_email: str | None = None
    seller_name: str | None = None
    reviewer_name: str | None = None


class AdminReportList(BaseModel):
    reports: list[AdminReportRow]
    pagination: Pagination


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class ReasonCount(BaseModel):
    reason: str
    count: int


class ReportStatsResponse(BaseModel):
    pending: int = 0
    reviewed: int = 0
    resolved: int = 0
    dismissed: int = 0
    total: int = 0
    by_reason: list[ReasonCount] = Field(default_factory=list, serialization_alias="byReason")


# =============================================================================
# Admin accounts
# =============================================================================


class AdminListResponse(BaseModel):
    admins: list[AdminResponse]


class AdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, description="At least 8 characters")
    full_name: str = Field(
        min_length=1, validation_alias=AliasChoices("fullName", "full_name")
    )
    role: AdminRole = AdminRole.ADMIN

    @field_validator("full_name")
    @classmethod
    def strip_markup(cls, v: str) -> str:
        v = sanitize_text(v)
        if not v:
            raise ValueError("Full name is required")
        return v


class AdminUpdate(BaseModel):
    full_name: str | None = Field(
        default=None, validation_alias=AliasChoices("fullName", "full_name")
    )
    role: AdminRole | None = None
    is_active: bool | None = Field(
        default=None, validation_alias=AliasChoices("isActive", "is_active")
    )

    @field_validator("full_name")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = sanitize_text(v)
        if not v:
            raise ValueError("Full name must not be empty")
        return v


class AdminCreatedResponse(BaseModel):
    id: str
    message: str = "Admin created successfully"
