"""Product listing model."""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, new_id
from app.db.models.enums import ProductCondition

if TYPE_CHECKING:
    from app.db.models.user import User


class Product(Base):
    """An item a student has listed for sale or giveaway."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Listing details
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    condition: Mapped[ProductCondition] = mapped_column(
        Enum(ProductCondition), default=ProductCondition.GOOD
    )
    negotiable: Mapped[bool] = mapped_column(Boolean, default=False)
    college: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Image URLs (JSON list stored as text)
    images_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    # Visibility and moderation
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False)
    flagged_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    flag_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    view_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="products", lazy="selectin")

    __table_args__ = (
        Index("ix_products_active_created", "is_active", "created_at"),
        Index("ix_products_user_id", "user_id"),
        Index("ix_products_category", "category"),
    )

    @property
    def images(self) -> list[str]:
        """Decoded image URL list."""
        try:
            return json.loads(self.images_json or "[]")
        except json.JSONDecodeError:
            return []

    @images.setter
    def images(self, urls: list[str]) -> None:
        self.images_json = json.dumps(list(urls))
