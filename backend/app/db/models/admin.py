"""Administrator accounts and their audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, new_id
from app.db.models.enums import AdminRole


class Admin(Base):
    """An account allowed into the administrative console."""

    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[AdminRole] = mapped_column(Enum(AdminRole), default=AdminRole.ADMIN)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    activity_logs: Mapped[list["ActivityLog"]] = relationship(
        "ActivityLog", back_populates="admin"
    )


class ActivityLog(Base):
    """Append-only record of a privileged mutation.

    Rows are never updated or deleted by the application.
    """

    __tablename__ = "admin_activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    admin_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Opaque detail payload (JSON stored as text for SQLite compatibility)
    details_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    admin: Mapped[Optional[Admin]] = relationship("Admin", back_populates="activity_logs")

    __table_args__ = (
        Index("ix_admin_activity_logs_created_at", "created_at"),
        Index("ix_admin_activity_logs_action", "action"),
        Index("ix_admin_activity_logs_entity_type", "entity_type"),
    )
