"""System setting model backing runtime configuration and feature flags."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, new_id
from app.db.models.enums import SettingType

if TYPE_CHECKING:
    from app.db.models.admin import Admin


class SystemSetting(Base):
    """A named configuration value, stored as text with a declared logical type.

    Rows are seeded ahead of time; the admin console only ever updates them.
    """

    __tablename__ = "system_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # Immutable lookup key
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    # Stored text form; decoded according to ``type``
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[SettingType] = mapped_column(
        Enum(SettingType), nullable=False, default=SettingType.STRING
    )

    # Presentation only
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Last writer
    updated_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    updater: Mapped[Admin | None] = relationship("Admin")
