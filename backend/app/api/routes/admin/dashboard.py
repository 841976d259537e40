"""Admin API routes for the dashboard and activity log."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_admin
from app.db import get_db
from app.schemas.admin import AdminUserRow
from app.schemas.dashboard import (
    ActivityLogEntry,
    ActivityLogList,
    CategoryBreakdown,
    ChartPoint,
    CollegeBreakdown,
    DashboardOverview,
    EngagementMetrics,
    TopProduct,
)
from app.services.audit import AuditLogService, decode_details
from app.services.dashboard import DEFAULT_PERIOD_DAYS, DEFAULT_TOP_LIMIT, DashboardService
from app.services.users import UserModerationService

router = APIRouter(
    prefix="/dashboard",
    tags=["admin-dashboard"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(
    period: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=365, description="Days to compare"),
    db: AsyncSession = Depends(get_db),
) -> DashboardOverview:
    """Get marketplace totals and growth over the period."""
    return await DashboardService(db).get_overview(period)


@router.get("/charts/users", response_model=list[ChartPoint])
async def get_user_chart(
    period: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
) -> list[ChartPoint]:
    """Get sign-ups per day."""
    return await DashboardService(db).get_user_chart(period)


@router.get("/charts/products", response_model=list[ChartPoint])
async def get_product_chart(
    period: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
) -> list[ChartPoint]:
    """Get new listings per day."""
    return await DashboardService(db).get_product_chart(period)


@router.get("/charts/categories", response_model=list[CategoryBreakdown])
async def get_category_chart(db: AsyncSession = Depends(get_db)) -> list[CategoryBreakdown]:
    return await DashboardService(db).get_category_chart()


@router.get("/charts/colleges", response_model=list[CollegeBreakdown])
async def get_college_chart(db: AsyncSession = Depends(get_db)) -> list[CollegeBreakdown]:
    return await DashboardService(db).get_college_chart()


@router.get("/top-products", response_model=list[TopProduct])
async def get_top_products(
    limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[TopProduct]:
    """Get the most viewed listings."""
    return await DashboardService(db).get_top_products(limit)


@router.get("/recent-users", response_model=list[AdminUserRow])
async def get_recent_users(
    limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[AdminUserRow]:
    """Get the newest student accounts."""
    rows, _ = await UserModerationService(db).list_users(page=1, limit=limit)
    return [AdminUserRow(**row) for row in rows]


@router.get("/engagement", response_model=EngagementMetrics)
async def get_engagement(
    period: int = Query(
        DEFAULT_PERIOD_DAYS, ge=1, le=365, description="Days a sign-in counts as active"
    ),
    db: AsyncSession = Depends(get_db),
) -> EngagementMetrics:
    """Get engagement ratios across students and listings."""
    return await DashboardService(db).get_engagement(period)


@router.get("/activity-logs", response_model=ActivityLogList)
async def get_activity_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> ActivityLogList:
    """Get the admin activity log, newest first."""
    entries, total = await AuditLogService(db).list_entries(
        page=page, page_size=page_size, action=action, entity_type=entity_type
    )
    return ActivityLogList(
        logs=[
            ActivityLogEntry(
                id=entry.id,
                admin_id=entry.admin_id,
                admin_email=entry.admin.email if entry.admin else None,
                admin_name=entry.admin.full_name if entry.admin else None,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                details=decode_details(entry),
                ip_address=entry.ip_address,
                created_at=entry.created_at,
            )
            for entry in entries
        ],
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size,
    )
