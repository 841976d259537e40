"""Listing reports raised by students and reviewed by moderators."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, new_id
from app.db.models.enums import ReportReason, ReportStatus

if TYPE_CHECKING:
    from app.db.models.admin import Admin
    from app.db.models.product import Product
    from app.db.models.user import User


class ProductReport(Base):
    """A complaint about a listing."""

    __tablename__ = "product_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    product_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    reporter_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reason: Mapped[ReportReason] = mapped_column(Enum(ReportReason), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Review state
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus), default=ReportStatus.PENDING
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    product: Mapped[Product] = relationship("Product", lazy="selectin")
    reporter: Mapped[User] = relationship("User", lazy="selectin")
    reviewer: Mapped[Optional[Admin]] = relationship("Admin", lazy="selectin")

    __table_args__ = (
        Index("ix_product_reports_status", "status"),
        Index("ix_product_reports_product_reporter", "product_id", "reporter_id"),
    )
