"""Listing and report moderation for the admin console."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import Product, ProductReport, ReportReason, ReportStatus
from app.services.products import delete_products

logger = get_logger(__name__)


class ModerationError(Exception):
    """Raised when a moderation action does not apply."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)


class ProductModerationService:
    """Admin-side listing queries and visibility/flag changes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(
        self,
        page: int = 1,
        limit: int = 25,
        search: str | None = None,
        category: str | None = None,
        status: str | None = None,
        user_id: str | None = None,
        offset: int | None = None,
    ) -> tuple[list[Product], int]:
        """List every listing, hidden and flagged ones included.

        Args:
            status: ``active``, ``inactive``, ``flagged`` or anything else for all.
            user_id: Only listings of this seller.
            offset: Rows to skip; overrides ``page`` when given.
        """
        query = select(Product)
        if user_id:
            query = query.where(Product.user_id == user_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Product.title.ilike(pattern), Product.description.ilike(pattern))
            )
        if category:
            query = query.where(Product.category == category)
        if status == "active":
            query = query.where(Product.is_active.is_(True))
        elif status == "inactive":
            query = query.where(Product.is_active.is_(False))
        elif status == "flagged":
            query = query.where(Product.is_flagged.is_(True))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            query.order_by(Product.created_at.desc(), Product.id)
            .offset(offset if offset is not None else (page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_product(self, product_id: str) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ModerationError("Product not found", status_code=404)
        return product

    async def toggle_visibility(self, product_id: str) -> Product:
        """Show a hidden listing or hide a visible one."""
        product = await self.get_product(product_id)
        product.is_active = not product.is_active
        await self.db.flush()
        return product

    async def flag(self, product_id: str, reason: str) -> Product:
        product = await self.get_product(product_id)
        product.is_flagged = True
        product.flagged_at = datetime.utcnow()
        product.flag_reason = reason
        await self.db.flush()
        return product

    async def unflag(self, product_id: str) -> Product:
        product = await self.get_product(product_id)
        if not product.is_flagged:
            raise ModerationError("Product is not flagged")
        product.is_flagged = False
        product.flagged_at = None
        product.flag_reason = None
        await self.db.flush()
        return product

    async def delete(self, product_id: str) -> Product:
        """Delete a listing. Returns the (now detached) row for the audit trail."""
        product = await self.get_product(product_id)
        await delete_products(self.db, [product.id])
        logger.info("product_removed_by_admin", product_id=product_id)
        return product

    async def list_categories(self) -> list[tuple[str, int]]:
        result = await self.db.execute(
            select(Product.category, func.count(Product.id))
            .group_by(Product.category)
            .order_by(func.count(Product.id).desc())
        )
        return [(category, count) for category, count in result.all()]


class ReportModerationService:
    """Review workflow for student reports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_reports(
        self,
        page: int = 1,
        limit: int = 25,
        status: ReportStatus | None = None,
        reason: ReportReason | None = None,
    ) -> tuple[list[ProductReport], int]:
        query = select(ProductReport)
        if status is not None:
            query = query.where(ProductReport.status == status)
        if reason is not None:
            query = query.where(ProductReport.reason == reason)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            query.order_by(ProductReport.created_at.desc(), ProductReport.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_report(self, report_id: str) -> ProductReport:
        report = await self.db.get(ProductReport, report_id)
        if report is None:
            raise ModerationError("Report not found", status_code=404)
        return report

    async def update_status(
        self, report_id: str, status: ReportStatus, reviewer_id: str
    ) -> ProductReport:
        """Move a report through the workflow.

        Returning a report to ``pending`` clears the reviewer.
        """
        report = await self.get_report(report_id)
        report.status = status
        if status == ReportStatus.PENDING:
            report.reviewed_by = None
            report.reviewed_at = None
        else:
            report.reviewed_by = reviewer_id
            report.reviewed_at = datetime.utcnow()
        await self.db.flush()
        await self.db.refresh(report, attribute_names=["reviewer"])
        return report

    async def summary(self) -> tuple[dict[str, int], list[tuple[str, int]]]:
        """Counts per status (plus total) and per reason."""
        by_status = dict.fromkeys((s.value for s in ReportStatus), 0)
        result = await self.db.execute(
            select(ProductReport.status, func.count(ProductReport.id)).group_by(
                ProductReport.status
            )
        )
        for status, count in result.all():
            by_status[status.value] = count
        by_status["total"] = sum(by_status.values())

        result = await self.db.execute(
            select(ProductReport.reason, func.count(ProductReport.id))
            .group_by(ProductReport.reason)
            .order_by(func.count(ProductReport.id).desc())
        )
        by_reason = [(reason.value, count) for reason, count in result.all()]
        return by_status, by_reason
