"""Pydantic schemas for the admin dashboard, activity log and database browser."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.admin import Pagination


class DashboardSummary(BaseModel):
    total_users: int = Field(serialization_alias="totalUsers")
    total_products: int = Field(serialization_alias="totalProducts")
    active_products: int = Field(serialization_alias="activeProducts")
    total_sellers: int = Field(serialization_alias="totalSellers")
    total_views: int = Field(serialization_alias="totalViews")
    total_wishlist: int = Field(serialization_alias="totalWishlist")
    revenue_potential: int = Field(serialization_alias="revenuePotential")
    suspended_users: int = Field(serialization_alias="suspendedUsers")
    flagged_products: int = Field(serialization_alias="flaggedProducts")
    pending_reports: int = Field(serialization_alias="pendingReports")


class DashboardGrowth(BaseModel):
    users_change: float = Field(serialization_alias="usersChange")
    products_change: float = Field(serialization_alias="productsChange")
    new_users: int = Field(serialization_alias="newUsers")
    new_products: int = Field(serialization_alias="newProducts")


class DashboardOverview(BaseModel):
    summary: DashboardSummary
    growth: DashboardGrowth
    period_days: int = Field(serialization_alias="periodDays")


class ChartPoint(BaseModel):
    """New rows created on one day."""

    day: date = Field(serialization_alias="date")
    count: int


class CategoryBreakdown(BaseModel):
    category: str
    count: int
    active_count: int


class CollegeBreakdown(BaseModel):
    college: str
    users_count: int
    products_count: int


class TopProduct(BaseModel):
    id: str
    title: str
    price: int
    category: str
    view_count: int
    is_active: bool
    created_at: datetime
    seller_name: str | None = None


class EngagementMetrics(BaseModel):
    avg_products_per_seller: float = Field(serialization_alias="avgProductsPerSeller")
    avg_views_per_product: float = Field(serialization_alias="avgViewsPerProduct")
    wishlist_rate: float = Field(serialization_alias="wishlistRate")
    active_users: int = Field(serialization_alias="activeUsers")
    total_users: int = Field(serialization_alias="totalUsers")
    active_user_rate: float = Field(serialization_alias="activeUserRate")
    conversion_rate: float = Field(serialization_alias="conversionRate")


class ActivityLogEntry(BaseModel):
    id: str
    admin_id: str | None = None
    admin_email: str | None = None
    admin_name: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: Any = None
    ip_address: str | None = None
    created_at: datetime


class ActivityLogList(BaseModel):
    logs: list[ActivityLogEntry]
    total: int
    page: int
    page_size: int
    pages: int


class TableInfo(BaseModel):
    name: str
    row_count: int


class ColumnInfo(BaseModel):
    name: str
    type: str
    nullable: bool
    primary_key: bool
    default: str | None = None


class IndexInfo(BaseModel):
    name: str
    columns: list[str]
    unique: bool


class TableSchemaResponse(BaseModel):
    columns: list[ColumnInfo]
    indexes: list[IndexInfo]


class TableRowsResponse(BaseModel):
    columns: list[str]
    rows: list[dict[str, Any]]
    pagination: Pagination
