"""Seller oversight for the admin console.

A seller is any student with at least one listing, active or not.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import Product, Profile, User, WishlistItem

logger = get_logger(__name__)

DEFAULT_SELLER_SORT = "products_count"


class SellerError(Exception):
    """Raised when an account cannot be shown as a seller."""

    def __init__(self, message: str, status_code: int = 404):
        self.status_code = status_code
        super().__init__(message)


def _active_count():
    return func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0)


# Columns a seller list may be sorted by
_products_count = func.count(Product.id).label("products_count")
_active_products = _active_count().label("active_products")
_total_views = func.coalesce(func.sum(Product.view_count), 0).label("total_views")
_listing_value = func.coalesce(func.sum(Product.price), 0).label("total_listing_value")
_first_listing = func.min(Product.created_at).label("first_listing")
_last_listing = func.max(Product.created_at).label("last_listing")
_joined_at = User.created_at.label("joined_at")

SELLER_SORT_COLUMNS = {
    "products_count": _products_count,
    "active_products": _active_products,
    "total_views": _total_views,
    "total_listing_value": _listing_value,
    "last_listing": _last_listing,
    "joined_at": _joined_at,
    "full_name": Profile.full_name,
}


class SellerService:
    """Read-only seller listings, totals and per-seller breakdowns."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_sellers(
        self,
        page: int = 1,
        limit: int = 25,
        search: str | None = None,
        college: str | None = None,
        sort: str = DEFAULT_SELLER_SORT,
        order: str = "desc",
    ) -> tuple[list[dict[str, Any]], int]:
        """List sellers with their listing totals.

        Args:
            sort: One of ``SELLER_SORT_COLUMNS``; unknown names fall back to
                ``products_count``.
            order: ``asc`` or ``desc``.

        Returns:
            Tuple of (seller rows on the requested page, total sellers matching).
        """
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(User.email.ilike(pattern), Profile.full_name.ilike(pattern)))
        if college:
            filters.append(Profile.college == college)

        total = (
            await self.db.execute(
                select(func.count(func.distinct(Product.user_id)))
                .select_from(Product)
                .join(User, User.id == Product.user_id)
                .outerjoin(Profile, Profile.user_id == User.id)
                .where(*filters)
            )
        ).scalar() or 0

        sort_column = SELLER_SORT_COLUMNS.get(sort, SELLER_SORT_COLUMNS[DEFAULT_SELLER_SORT])
        ordering = sort_column.asc() if order == "asc" else sort_column.desc()

        query = (
            select(
                User.id,
                User.email,
                _joined_at,
                User.last_sign_in,
                User.is_suspended,
                Profile.full_name,
                Profile.college,
                Profile.avatar_url,
                _products_count,
                _active_products,
                _total_views,
                _listing_value,
                _first_listing,
                _last_listing,
            )
            .select_from(User)
            .join(Product, Product.user_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(*filters)
            .group_by(
                User.id,
                User.email,
                User.created_at,
                User.last_sign_in,
                User.is_suspended,
                Profile.full_name,
                Profile.college,
                Profile.avatar_url,
            )
            .order_by(ordering, User.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [dict(row) for row in result.mappings().all()], total

    async def get_seller(self, user_id: str) -> dict[str, Any]:
        """One seller with listing statistics and a category breakdown.

        Raises:
            SellerError: If the account does not exist or has never listed anything.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise SellerError("Seller not found")

        stats_row = (
            await self.db.execute(
                select(
                    func.count(Product.id).label("total_products"),
                    _active_count().label("active_products"),
                    func.coalesce(
                        func.sum(case((Product.is_flagged.is_(True), 1), else_=0)), 0
                    ).label("flagged_products"),
                    func.coalesce(func.sum(Product.view_count), 0).label("total_views"),
                    func.avg(Product.view_count).label("avg_views"),
                    func.coalesce(func.sum(Product.price), 0).label("total_listing_value"),
                    func.avg(Product.price).label("avg_price"),
                ).where(Product.user_id == user_id)
            )
        ).mappings().one()

        if not stats_row["total_products"]:
            raise SellerError("User is not a seller")

        wishlist_count = (
            await self.db.execute(
                select(func.count(WishlistItem.id))
                .select_from(WishlistItem)
                .join(Product, Product.id == WishlistItem.product_id)
                .where(Product.user_id == user_id)
            )
        ).scalar() or 0

        categories = await self.db.execute(
            select(Product.category, func.count(Product.id))
            .where(Product.user_id == user_id)
            .group_by(Product.category)
            .order_by(func.count(Product.id).desc(), Product.category)
        )

        logger.debug("seller_detail_computed", user_id=user_id)
        profile = user.profile
        return {
            "id": user.id,
            "email": user.email,
            "joined_at": user.created_at,
            "last_sign_in": user.last_sign_in,
            "is_suspended": user.is_suspended,
            "suspension_reason": user.suspension_reason,
            "full_name": profile.full_name if profile else None,
            "college": profile.college if profile else None,
            "phone": profile.phone if profile else None,
            "avatar_url": profile.avatar_url if profile else None,
            "stats": {
                "total_products": stats_row["total_products"],
                "active_products": int(stats_row["active_products"]),
                "flagged_products": int(stats_row["flagged_products"]),
                "total_views": int(stats_row["total_views"]),
                "avg_views": round(float(stats_row["avg_views"] or 0), 2),
                "total_listing_value": int(stats_row["total_listing_value"]),
                "avg_price": round(float(stats_row["avg_price"] or 0), 2),
                "wishlist_count": wishlist_count,
            },
            "categories": [
                {"category": category, "count": count}
                for category, count in categories.all()
            ],
        }
