"""Settings service for typed system settings and feature flags."""

from __future__ import annotations

import json
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import SettingType, SystemSetting
from app.services.audit import AuditLogService
from app.services.settings_cache import MISSING, SettingsCache

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAINTENANCE_MESSAGE = (
    "We are currently performing maintenance. Please check back soon."
)

# (key, type, category, stored value, description)
SETTINGS_SEED: list[tuple[str, SettingType, str, str, str]] = [
    ("maintenance_mode", SettingType.BOOLEAN, "system", "false",
     "Put the public site into maintenance mode"),
    ("maintenance_message", SettingType.STRING, "system", DEFAULT_MAINTENANCE_MESSAGE,
     "Message shown to visitors during maintenance"),
    ("api_enabled", SettingType.BOOLEAN, "system", "true",
     "Master switch for all non-admin API traffic"),
    ("registration_enabled", SettingType.BOOLEAN, "features", "true",
     "Allow new students to sign up"),
    ("login_enabled", SettingType.BOOLEAN, "features", "true",
     "Allow students to sign in"),
    ("product_creation_enabled", SettingType.BOOLEAN, "features", "true",
     "Allow new listings to be created"),
    ("product_editing_enabled", SettingType.BOOLEAN, "features", "true",
     "Allow existing listings to be edited"),
    ("wishlist_enabled", SettingType.BOOLEAN, "features", "true",
     "Allow wishlist changes"),
    ("site_name", SettingType.STRING, "general", "Campus Marketplace",
     "Site title"),
    ("site_description", SettingType.STRING, "general", "Buy and sell within your campus",
     "Site tagline"),
    ("featured_categories", SettingType.JSON, "general",
     '["electronics","books-stationary","furniture"]',
     "Categories highlighted on the home page"),
    ("max_products_per_user", SettingType.NUMBER, "limits", "50",
     "Maximum active listings per student"),
    ("max_images_per_product", SettingType.NUMBER, "limits", "5",
     "Maximum images attached to one listing"),
    ("require_email_verification", SettingType.BOOLEAN, "security", "false",
     "Require a verified email before listing"),
]

# Aggregate read for client-side conditional rendering
PUBLIC_STATUS_DEFAULTS: dict[str, Any] = {
    "maintenance_mode": False,
    "maintenance_message": DEFAULT_MAINTENANCE_MESSAGE,
    "registration_enabled": True,
    "login_enabled": True,
    "product_creation_enabled": True,
    "product_editing_enabled": True,
    "wishlist_enabled": True,
    "api_enabled": True,
}


class SettingsError(Exception):
    """Base exception for settings errors."""

    pass


class SettingNotFoundError(SettingsError):
    """Raised when a setting key does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Setting not found: {key}")


class SettingsValidationError(SettingsError):
    """Raised when a value cannot be coerced to the setting's type."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


# Coercion: raw client value -> stored text


def _format_number(number: float) -> str:
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _coerce_boolean(key: str, raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return "true" if raw == 1 else "false"
    return "true" if raw in ("true", "1") else "false"


def _coerce_number(key: str, raw: Any) -> str:
    if raw is None or isinstance(raw, bool):
        raise SettingsValidationError(key, f"Invalid number value for {key}")
    if isinstance(raw, int):
        return str(raw)

    if isinstance(raw, float):
        number = raw
    else:
        text = str(raw).strip()
        try:
            number = float(text)
        except ValueError:
            try:
                number = float(int(text, 0))
            except ValueError:
                raise SettingsValidationError(
                    key, f"Invalid number value for {key}"
                ) from None

    if not math.isfinite(number):
        raise SettingsValidationError(key, f"Invalid number value for {key}")
    return _format_number(number)


def _coerce_json(key: str, raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    return json.dumps(raw)


def _coerce_string(key: str, raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (dict, list)):
        return json.dumps(raw)
    return str(raw)


_COERCERS: dict[SettingType, Callable[[str, Any], str]] = {
    SettingType.BOOLEAN: _coerce_boolean,
    SettingType.NUMBER: _coerce_number,
    SettingType.JSON: _coerce_json,
    SettingType.STRING: _coerce_string,
}


def coerce_value(key: str, setting_type: SettingType, raw: Any) -> str:
    """Convert a client-supplied value into the stored text form.

    Raises:
        SettingsValidationError: If ``raw`` is not valid for ``setting_type``.
    """
    coercer = _COERCERS.get(setting_type, _coerce_string)
    return coercer(key, raw)


# Decoding: stored text -> typed value


def _decode_number(text: str) -> int | float:
    number = float(text)
    if number.is_integer():
        return int(number)
    return number


_DECODERS: dict[SettingType, Callable[[str], Any]] = {
    SettingType.BOOLEAN: lambda text: text in ("true", "1"),
    SettingType.NUMBER: _decode_number,
    SettingType.JSON: json.loads,
    SettingType.STRING: lambda text: text,
}


def decode_value(setting_type: SettingType, text: str | None) -> Any:
    """Decode stored text strictly.

    Raises:
        ValueError: If the text is not valid for the type (json errors included).
    """
    decoder = _DECODERS.get(setting_type, _DECODERS[SettingType.STRING])
    return decoder(text or "")


def decode_for_display(setting_type: SettingType, text: str | None) -> Any:
    """Decode stored text for the admin console, never raising.

    Malformed numbers display as 0 and malformed JSON as the raw text.
    """
    try:
        return decode_value(setting_type, text)
    except ValueError:
        if setting_type == SettingType.NUMBER:
            return 0
        return text or ""


def setting_to_dict(row: SystemSetting) -> dict[str, Any]:
    """Admin-console view of one setting row."""
    return {
        "id": row.id,
        "key": row.key,
        "value": decode_for_display(row.type, row.value),
        "type": row.type.value,
        "description": row.description,
        "category": row.category,
        "updated_at": row.updated_at,
        "updated_by": row.updated_by,
    }


async def read_with_default(read: Awaitable[Any], default: T, *, key: str) -> Any | T:
    """Fail-open read policy.

    Awaits ``read`` and returns its value; a missing row or any error collapses to
    ``default``. Only feature checks and public reads go through here.
    """
    try:
        value = await read
    except Exception as e:
        logger.warning("setting_read_failed_open", key=key, error=str(e))
        return default
    if value is MISSING:
        return default
    return value


@dataclass
class BulkUpdateResult:
    """Outcome of a bulk update: applied entries and the ones left out."""

    updates: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)


class SettingsService:
    """Service for reading and writing system settings.

    Reads used by public traffic go through the shared ``SettingsCache`` and fail
    open. Admin writes are fail-closed: each one records an activity log entry in
    the same transaction, commits it and then empties the cache.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: SettingsCache,
        audit: AuditLogService | None = None,
    ):
        """Initialize the settings service.

        Args:
            db: AsyncSession for database operations.
            cache: Process-wide settings cache.
            audit: Audit recorder; defaults to one bound to ``db``.
        """
        self.db = db
        self.cache = cache
        self.audit = audit or AuditLogService(db)

    async def get_setting(self, key: str, default: T | None = None) -> Any | T | None:
        """Get a decoded setting value, falling back to ``default``.

        Never raises: an unknown key, an unreachable store or an undecodable
        value all resolve to ``default``.
        """
        return await read_with_default(self.fetch_setting(key), default, key=key)

    async def read_with_default(self, key: str, default: T) -> Any | T:
        """Named fail-open read for feature checks."""
        return await self.get_setting(key, default)

    async def fetch_setting(self, key: str) -> Any:
        """Strict read-through: cache, then store.

        Returns:
            The decoded value, or ``MISSING`` if no row exists.

        Raises:
            Whatever the store or decoder raises.
        """
        cached = self.cache.get(key)
        if cached is not MISSING:
            return cached

        row = await self._get_row(key)
        if row is None:
            return MISSING

        value = decode_value(row.type, row.value)
        self.cache.put(key, value)
        return value

    async def get_all_settings(self) -> dict[str, list[dict[str, Any]]]:
        """Get every setting grouped by category, read live from the store."""
        result = await self.db.execute(
            select(SystemSetting).order_by(SystemSetting.category, SystemSetting.key)
        )
        grouped: dict[str, list[dict[str, Any]]] = {}
        for row in result.scalars().all():
            grouped.setdefault(row.category, []).append(setting_to_dict(row))
        return grouped

    async def get_setting_row(self, key: str) -> dict[str, Any]:
        """Get the admin view of one setting.

        Raises:
            SettingNotFoundError: If the key is unknown.
        """
        row = await self._get_row(key)
        if row is None:
            raise SettingNotFoundError(key)
        return setting_to_dict(row)

    async def update_setting(
        self,
        key: str,
        raw_value: Any,
        actor_id: str | None,
        source_ip: str | None = None,
    ) -> Any:
        """Coerce, persist and audit one setting, commit, then invalidate the cache.

        Returns:
            The decoded value now stored.

        Raises:
            SettingNotFoundError: If the key is unknown.
            SettingsValidationError: If the value does not fit the setting's type.
            AuditLogError: If the activity log row cannot be written.
        """
        row = await self._get_row(key)
        if row is None:
            raise SettingNotFoundError(key)

        old_value = row.value
        stored = coerce_value(key, row.type, raw_value)
        await self._write_row(row, stored, actor_id)
        await self.audit.record(
            actor_id,
            "setting_update",
            entity_type="system_setting",
            entity_id=row.id,
            detail={"key": key, "oldValue": old_value, "newValue": stored},
            source_ip=source_ip,
        )

        await self._commit()
        logger.info("setting_updated", key=key, actor_id=actor_id)
        return decode_for_display(row.type, stored)

    async def update_settings_bulk(
        self,
        entries: list[tuple[str, Any]],
        actor_id: str | None,
        source_ip: str | None = None,
    ) -> BulkUpdateResult:
        """Apply many ``(key, raw_value)`` pairs, skipping the ones that do not fit.

        Unknown keys and invalid values are reported in ``skipped`` instead of
        aborting the batch. The cache is invalidated once at the end.
        """
        outcome = BulkUpdateResult()

        for key, raw_value in entries:
            row = await self._get_row(key)
            if row is None:
                outcome.skipped.append({"key": key, "reason": "Setting not found"})
                continue

            try:
                stored = coerce_value(key, row.type, raw_value)
            except SettingsValidationError as e:
                outcome.skipped.append({"key": key, "reason": str(e)})
                continue

            old_value = row.value
            await self._write_row(row, stored, actor_id)
            await self.audit.record(
                actor_id,
                "setting_update",
                entity_type="system_setting",
                entity_id=row.id,
                detail={"key": key, "oldValue": old_value, "newValue": stored},
                source_ip=source_ip,
            )
            outcome.updates.append(
                {"key": key, "value": decode_for_display(row.type, stored)}
            )

        await self._commit()
        logger.info(
            "settings_bulk_updated",
            applied=len(outcome.updates),
            skipped=len(outcome.skipped),
            actor_id=actor_id,
        )
        return outcome

    async def toggle_maintenance(
        self, actor_id: str | None, source_ip: str | None = None
    ) -> bool:
        """Flip ``maintenance_mode`` and return the new state."""
        current = await self.get_setting("maintenance_mode", False)
        enabled = not bool(current)

        await self._write_flag("maintenance_mode", enabled, actor_id)
        await self.audit.record(
            actor_id,
            "maintenance_toggle",
            entity_type="system_setting",
            detail={"enabled": enabled},
            source_ip=source_ip,
        )

        await self._commit()
        logger.info("maintenance_toggled", enabled=enabled, actor_id=actor_id)
        return enabled

    async def emergency_shutdown(
        self, actor_id: str | None, source_ip: str | None = None
    ) -> dict[str, bool]:
        """Disable the API and enable maintenance mode without reading prior state."""
        await self._write_flag("api_enabled", False, actor_id)
        await self._write_flag("maintenance_mode", True, actor_id)
        await self.audit.record(
            actor_id,
            "emergency_shutdown",
            entity_type="system_setting",
            detail={"action": "Emergency shutdown activated"},
            source_ip=source_ip,
        )

        await self._commit()
        logger.warning("emergency_shutdown_activated", actor_id=actor_id)
        return {"api_enabled": False, "maintenance_mode": True}

    async def public_status(self) -> dict[str, Any]:
        """All public flags in one mapping, each falling back to its default."""
        status: dict[str, Any] = {}
        for key, default in PUBLIC_STATUS_DEFAULTS.items():
            status[key] = await self.read_with_default(key, default)
        return status

    async def seed_defaults(self) -> int:
        """Insert any seeded setting that is missing. Existing rows are untouched.

        Returns:
            Number of rows inserted.
        """
        result = await self.db.execute(select(SystemSetting.key))
        existing = set(result.scalars().all())

        inserted = 0
        for key, setting_type, category, value, description in SETTINGS_SEED:
            if key in existing:
                continue
            self.db.add(
                SystemSetting(
                    key=key,
                    value=value,
                    type=setting_type,
                    category=category,
                    description=description,
                )
            )
            inserted += 1

        if inserted:
            await self.db.flush()
            self.cache.invalidate_all()
        logger.info("settings_seeded", inserted=inserted)
        return inserted

    async def _commit(self) -> None:
        # Readers may only refill the cache once the write is visible
        await self.db.commit()
        self.cache.invalidate_all()

    async def _get_row(self, key: str) -> SystemSetting | None:
        result = await self.db.execute(
            select(SystemSetting).where(SystemSetting.key == key)
        )
        return result.scalar_one_or_none()

    async def _write_row(
        self, row: SystemSetting, stored: str, actor_id: str | None
    ) -> None:
        row.value = stored
        row.updated_by = actor_id
        row.updated_at = datetime.utcnow()
        await self.db.flush()

    async def _write_flag(self, key: str, enabled: bool, actor_id: str | None) -> None:
        await self.db.execute(
            update(SystemSetting)
            .where(SystemSetting.key == key)
            .values(
                value="true" if enabled else "false",
                updated_by=actor_id,
                updated_at=datetime.utcnow(),
            )
        )
