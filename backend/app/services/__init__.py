"""Business logic services for the marketplace backend."""

from app.services.audit import AuditLogError, AuditLogService
from app.services.auth import AuthError, AuthService
from app.services.products import ProductError, ProductService
from app.services.settings import (
    SettingNotFoundError,
    SettingsError,
    SettingsService,
    SettingsValidationError,
)
from app.services.settings_cache import SettingsCache

__all__ = [
    "AuditLogError",
    "AuditLogService",
    "AuthError",
    "AuthService",
    "ProductError",
    "ProductService",
    "SettingNotFoundError",
    "SettingsCache",
    "SettingsError",
    "SettingsService",
    "SettingsValidationError",
]
