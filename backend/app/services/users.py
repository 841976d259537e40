"""Student account moderation for the admin console."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import Product, ProductReport, Profile, User, WishlistItem
from app.services.products import delete_products

logger = get_logger(__name__)


class UserModerationError(Exception):
    """Raised when a moderation action does not apply to the account."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)


class UserNotFoundError(UserModerationError):
    def __init__(self):
        super().__init__("User not found", status_code=404)


@dataclass
class UserStats:
    products_count: int
    active_products: int
    total_views: int
    wishlist_count: int


def _products_count():
    return (
        select(func.count(Product.id))
        .where(Product.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )


def _wishlist_count():
    return (
        select(func.count(WishlistItem.id))
        .where(WishlistItem.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )


def user_summary(user: User, products_count: int = 0, wishlist_count: int = 0) -> dict[str, Any]:
    """Flatten a user and its profile into one row for the console."""
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "email_verified": user.email_verified,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "last_sign_in": user.last_sign_in,
        "is_suspended": user.is_suspended,
        "suspended_at": user.suspended_at,
        "suspension_reason": user.suspension_reason,
        "full_name": profile.full_name if profile else None,
        "college": profile.college if profile else None,
        "phone": profile.phone if profile else None,
        "avatar_url": profile.avatar_url if profile else None,
        "products_count": products_count,
        "wishlist_count": wishlist_count,
    }


class UserModerationService:
    """Listing, inspecting, suspending and deleting student accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(
        self,
        page: int = 1,
        limit: int = 25,
        search: str | None = None,
        college: str | None = None,
        status: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """List accounts newest first.

        Args:
            status: ``active``, ``suspended`` or anything else for all.

        Returns:
            Tuple of (account rows on the requested page, total matching accounts).
        """
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(User.email.ilike(pattern), Profile.full_name.ilike(pattern)))
        if college:
            filters.append(Profile.college == college)
        if status == "active":
            filters.append(User.is_suspended.is_(False))
        elif status == "suspended":
            filters.append(User.is_suspended.is_(True))

        count_query = (
            select(func.count(User.id))
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(*filters)
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(
                User,
                _products_count().label("products_count"),
                _wishlist_count().label("wishlist_count"),
            )
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(*filters)
            .order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        rows = [
            user_summary(user, products, wishlist)
            for user, products, wishlist in result.all()
        ]
        return rows, total

    async def get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def get_stats(self, user_id: str) -> UserStats:
        """Listing and wishlist counters for one account."""
        result = await self.db.execute(
            select(
                func.count(Product.id),
                func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(Product.view_count), 0),
            ).where(Product.user_id == user_id)
        )
        products_count, active_products, total_views = result.one()

        wishlist_count = (
            await self.db.execute(
                select(func.count(WishlistItem.id)).where(WishlistItem.user_id == user_id)
            )
        ).scalar() or 0

        return UserStats(
            products_count=products_count or 0,
            active_products=int(active_products or 0),
            total_views=int(total_views or 0),
            wishlist_count=wishlist_count,
        )

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        """Edit profile fields (``full_name``, ``college``, ``phone``) of an account.

        Raises:
            UserNotFoundError: If the account does not exist.
        """
        user = await self.get_user(user_id)
        if not changes:
            return user

        if user.profile is None:
            user.profile = Profile(full_name=user.email.split("@")[0])
        for field_name, value in changes.items():
            setattr(user.profile, field_name, value)
        await self.db.flush()

        logger.info("user_updated", user_id=user_id, fields=sorted(changes))
        return user

    async def suspend_user(self, user_id: str, reason: str | None = None) -> User:
        """Suspend an account and hide all of its listings.

        Raises:
            UserNotFoundError: If the account does not exist.
            UserModerationError: If it is already suspended.
        """
        user = await self.get_user(user_id)
        if user.is_suspended:
            raise UserModerationError("User is already suspended")

        user.is_suspended = True
        user.suspended_at = datetime.utcnow()
        user.suspension_reason = reason
        await self.db.execute(
            update(Product).where(Product.user_id == user_id).values(is_active=False)
        )
        await self.db.flush()

        logger.info("user_suspended", user_id=user_id)
        return user

    async def activate_user(self, user_id: str) -> User:
        """Lift a suspension. Listings stay hidden until their owner re-enables them."""
        user = await self.get_user(user_id)
        if not user.is_suspended:
            raise UserModerationError("User is not suspended")

        user.is_suspended = False
        user.suspended_at = None
        user.suspension_reason = None
        await self.db.flush()

        logger.info("user_activated", user_id=user_id)
        return user

    async def delete_user(self, user_id: str) -> str:
        """Delete an account with everything it owns.

        Returns:
            The deleted account's email, for the audit trail.
        """
        user = await self.get_user(user_id)
        email = user.email

        product_ids = list(
            (await self.db.execute(select(Product.id).where(Product.user_id == user_id)))
            .scalars()
            .all()
        )
        await self.db.execute(delete(WishlistItem).where(WishlistItem.user_id == user_id))
        await self.db.execute(delete(ProductReport).where(ProductReport.reporter_id == user_id))
        await delete_products(self.db, product_ids)
        await self.db.execute(delete(Profile).where(Profile.user_id == user_id))
        await self.db.execute(delete(User).where(User.id == user_id))

        logger.info("user_deleted", user_id=user_id)
        return email

    async def list_colleges(self) -> list[tuple[str, int]]:
        """Colleges with at least one profile, most common first."""
        result = await self.db.execute(
            select(Profile.college, func.count(Profile.id).label("count"))
            .where(Profile.college.is_not(None), Profile.college != "")
            .group_by(Profile.college)
            .order_by(func.count(Profile.id).desc())
        )
        return [(college, count) for college, count in result.all()]
