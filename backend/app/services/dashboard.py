"""Dashboard statistics service.

Provides the aggregate counters shown on the admin console's landing page.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import Date, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import Product, ProductReport, Profile, ReportStatus, User, WishlistItem
from app.schemas.dashboard import (
    CategoryBreakdown,
    ChartPoint,
    CollegeBreakdown,
    DashboardGrowth,
    DashboardOverview,
    DashboardSummary,
    EngagementMetrics,
    TopProduct,
)

logger = get_logger(__name__)

DEFAULT_PERIOD_DAYS = 30
DEFAULT_TOP_LIMIT = 10
MAX_CHART_COLLEGES = 20


def growth_percent(new: int, previous: int) -> float:
    """New rows in the period as a percentage of rows that existed before it.

    With nothing to compare against, growth is reported as 100%.
    """
    if previous <= 0:
        return 100.0
    return round(new / previous * 100, 1)


def percent_of(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


class DashboardService:
    """Service for computing dashboard statistics."""

    def __init__(self, db: AsyncSession):
        """Initialize the dashboard service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def _scalar(self, query) -> int:
        return int((await self.db.execute(query)).scalar() or 0)

    async def get_overview(self, period_days: int = DEFAULT_PERIOD_DAYS) -> DashboardOverview:
        """Get totals plus growth over the last ``period_days`` days.

        Returns:
            DashboardOverview with summary counters and period growth.
        """
        since = datetime.utcnow() - timedelta(days=period_days)

        summary = DashboardSummary(
            total_users=await self._scalar(select(func.count(User.id))),
            total_products=await self._scalar(select(func.count(Product.id))),
            active_products=await self._scalar(
                select(func.count(Product.id)).where(Product.is_active.is_(True))
            ),
            total_sellers=await self._scalar(
                select(func.count(func.distinct(Product.user_id)))
            ),
            total_views=await self._scalar(select(func.coalesce(func.sum(Product.view_count), 0))),
            total_wishlist=await self._scalar(select(func.count(WishlistItem.id))),
            revenue_potential=await self._scalar(
                select(func.coalesce(func.sum(Product.price), 0)).where(
                    Product.is_active.is_(True)
                )
            ),
            suspended_users=await self._scalar(
                select(func.count(User.id)).where(User.is_suspended.is_(True))
            ),
            flagged_products=await self._scalar(
                select(func.count(Product.id)).where(Product.is_flagged.is_(True))
            ),
            pending_reports=await self._scalar(
                select(func.count(ProductReport.id)).where(
                    ProductReport.status == ReportStatus.PENDING
                )
            ),
        )

        new_users = await self._scalar(
            select(func.count(User.id)).where(User.created_at >= since)
        )
        prev_users = await self._scalar(
            select(func.count(User.id)).where(User.created_at < since)
        )
        new_products = await self._scalar(
            select(func.count(Product.id)).where(Product.created_at >= since)
        )
        prev_products = await self._scalar(
            select(func.count(Product.id)).where(Product.created_at < since)
        )

        growth = DashboardGrowth(
            users_change=growth_percent(new_users, prev_users),
            products_change=growth_percent(new_products, prev_products),
            new_users=new_users,
            new_products=new_products,
        )

        logger.debug("dashboard_overview_computed", period_days=period_days)
        return DashboardOverview(summary=summary, growth=growth, period_days=period_days)

    async def _daily_counts(self, created_at, period_days: int) -> list[ChartPoint]:
        since = datetime.utcnow() - timedelta(days=period_days)
        day = func.date(created_at, type_=Date)
        result = await self.db.execute(
            select(day, func.count())
            .where(created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return [ChartPoint(day=row_day, count=count) for row_day, count in result.all()]

    async def get_user_chart(self, period_days: int = DEFAULT_PERIOD_DAYS) -> list[ChartPoint]:
        """Sign-ups per day over the last ``period_days`` days, oldest first."""
        return await self._daily_counts(User.created_at, period_days)

    async def get_product_chart(self, period_days: int = DEFAULT_PERIOD_DAYS) -> list[ChartPoint]:
        """New listings per day over the last ``period_days`` days, oldest first."""
        return await self._daily_counts(Product.created_at, period_days)

    async def get_category_chart(self) -> list[CategoryBreakdown]:
        count = func.count(Product.id)
        result = await self.db.execute(
            select(
                Product.category,
                count,
                func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0),
            )
            .group_by(Product.category)
            .order_by(count.desc(), Product.category)
        )
        return [
            CategoryBreakdown(category=category, count=total, active_count=active)
            for category, total, active in result.all()
        ]

    async def get_college_chart(self) -> list[CollegeBreakdown]:
        """Students and listings per college, largest colleges first.

        Students without a college are grouped under ``Unknown``.
        """
        college = func.coalesce(Profile.college, "Unknown")
        users_count = func.count(func.distinct(Profile.user_id))
        result = await self.db.execute(
            select(college, users_count, func.count(func.distinct(Product.id)))
            .select_from(Profile)
            .outerjoin(Product, Product.user_id == Profile.user_id)
            .group_by(college)
            .order_by(users_count.desc(), college)
            .limit(MAX_CHART_COLLEGES)
        )
        return [
            CollegeBreakdown(college=name, users_count=users, products_count=products)
            for name, users, products in result.all()
        ]

    async def get_top_products(self, limit: int = DEFAULT_TOP_LIMIT) -> list[TopProduct]:
        """Most viewed listings, visible or not."""
        result = await self.db.execute(
            select(Product, Profile.full_name)
            .outerjoin(Profile, Profile.user_id == Product.user_id)
            .order_by(Product.view_count.desc(), Product.created_at.desc())
            .limit(limit)
        )
        return [
            TopProduct(
                id=product.id,
                title=product.title,
                price=product.price,
                category=product.category,
                view_count=product.view_count,
                is_active=product.is_active,
                created_at=product.created_at,
                seller_name=seller_name,
            )
            for product, seller_name in result.all()
        ]

    async def get_engagement(self, period_days: int = DEFAULT_PERIOD_DAYS) -> EngagementMetrics:
        """Ratios describing how students use the marketplace.

        Active users are those who signed in during the last ``period_days`` days;
        the conversion rate is the share of students who have listed something.
        """
        since = datetime.utcnow() - timedelta(days=period_days)

        total_users = await self._scalar(select(func.count(User.id)))
        total_products = await self._scalar(select(func.count(Product.id)))
        total_sellers = await self._scalar(select(func.count(func.distinct(Product.user_id))))
        wishlisted = await self._scalar(
            select(func.count(func.distinct(WishlistItem.product_id)))
        )
        active_users = await self._scalar(
            select(func.count(User.id)).where(User.last_sign_in >= since)
        )
        avg_views = (
            await self.db.execute(select(func.avg(Product.view_count)))
        ).scalar()

        return EngagementMetrics(
            avg_products_per_seller=(
                round(total_products / total_sellers, 2) if total_sellers else 0.0
            ),
            avg_views_per_product=round(float(avg_views or 0), 2),
            wishlist_rate=percent_of(wishlisted, total_products),
            active_users=active_users,
            total_users=total_users,
            active_user_rate=percent_of(active_users, total_users),
            conversion_rate=percent_of(total_sellers, total_users),
        )
