"""Database models for the marketplace backend."""

from app.db.models.admin import ActivityLog, Admin
from app.db.models.enums import (
    AdminRole,
    ProductCondition,
    ReportReason,
    ReportStatus,
    SettingType,
)
from app.db.models.product import Product
from app.db.models.report import ProductReport
from app.db.models.system_setting import SystemSetting
from app.db.models.user import Profile, User
from app.db.models.wishlist import WishlistItem

__all__ = [
    # Models
    "ActivityLog",
    "Admin",
    "Product",
    "ProductReport",
    "Profile",
    "SystemSetting",
    "User",
    "WishlistItem",
    # Enums
    "AdminRole",
    "ProductCondition",
    "ReportReason",
    "ReportStatus",
    "SettingType",
]
