"""Enum types for database models."""

from __future__ import annotations

import enum


class SettingType(str, enum.Enum):
    """Logical type of a system setting's stored text value."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    JSON = "json"
    STRING = "string"


class AdminRole(str, enum.Enum):
    """Administrative console roles, most privileged first."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MODERATOR = "moderator"

    @property
    def rank(self) -> int:
        """Privilege rank; higher outranks lower."""
        return _ROLE_RANKS[self]

    def at_least(self, other: AdminRole) -> bool:
        """Check whether this role carries at least the privileges of ``other``."""
        return self.rank >= other.rank


_ROLE_RANKS = {
    AdminRole.MODERATOR: 1,
    AdminRole.ADMIN: 2,
    AdminRole.SUPER_ADMIN: 3,
}


class ProductCondition(str, enum.Enum):
    """Condition of a listed item."""

    LIKE_NEW = "like-new"
    GOOD = "good"
    WELL_USED = "well-used"


class ReportReason(str, enum.Enum):
    """Why a student reported a listing."""

    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    FRAUD = "fraud"
    DUPLICATE = "duplicate"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    """Moderation workflow status of a report."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
