"""Tests for the settings service: typed reads, fail-open policy and audited writes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import OperationalError

from app.db.models import ActivityLog, SettingType, SystemSetting
from app.services.settings import (
    DEFAULT_MAINTENANCE_MESSAGE,
    PUBLIC_STATUS_DEFAULTS,
    SETTINGS_SEED,
    SettingNotFoundError,
    SettingsService,
    SettingsValidationError,
    coerce_value,
    decode_for_display,
    decode_value,
)
from app.services.settings_cache import SettingsCache


@pytest.fixture
async def service(db_session, settings_cache, seeded_settings) -> SettingsService:
    return SettingsService(db_session, settings_cache)


def unreachable_session() -> AsyncMock:
    """A session whose every query fails as if the database were down."""
    session = AsyncMock()
    session.execute.side_effect = OperationalError(
        "SELECT", {}, Exception("unable to open database file")
    )
    return session


async def count_activity(db_session, action: str | None = None) -> int:
    query = select(func.count(ActivityLog.id))
    if action:
        query = query.where(ActivityLog.action == action)
    return (await db_session.execute(query)).scalar()


async def stored_value(db_session, key: str) -> str:
    result = await db_session.execute(select(SystemSetting.value).where(SystemSetting.key == key))
    return result.scalar_one()


# =============================================================================
# Coercion and decoding
# =============================================================================


class TestCoerceValue:
    """Tests for converting client values to stored text."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (True, "true"),
            (False, "false"),
            ("true", "true"),
            ("1", "true"),
            (1, "true"),
            ("false", "false"),
            ("yes", "false"),
            (0, "false"),
            (None, "false"),
        ],
    )
    def test_boolean(self, raw, expected):
        assert coerce_value("maintenance_mode", SettingType.BOOLEAN, raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [(25, "25"), ("25", "25"), (" 30 ", "30"), (2.5, "2.5"), ("4.0", "4")],
    )
    def test_number(self, raw, expected):
        assert coerce_value("max_products_per_user", SettingType.NUMBER, raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", None, True, "nan", "inf"])
    def test_number_rejects_non_numeric(self, raw):
        with pytest.raises(SettingsValidationError) as exc_info:
            coerce_value("max_products_per_user", SettingType.NUMBER, raw)
        assert "max_products_per_user" in str(exc_info.value)

    def test_json_serializes_structures_and_keeps_text(self):
        assert coerce_value("featured_categories", SettingType.JSON, ["books"]) == '["books"]'
        assert coerce_value("featured_categories", SettingType.JSON, '["a"]') == '["a"]'

    def test_string(self):
        assert coerce_value("site_name", SettingType.STRING, "Bazaar") == "Bazaar"
        assert coerce_value("site_name", SettingType.STRING, 42) == "42"
        assert coerce_value("site_name", SettingType.STRING, None) == ""


class TestDecodeValue:
    """Tests for turning stored text back into typed values."""

    def test_decodes_each_type(self):
        assert decode_value(SettingType.BOOLEAN, "true") is True
        assert decode_value(SettingType.BOOLEAN, "1") is True
        assert decode_value(SettingType.BOOLEAN, "false") is False
        assert decode_value(SettingType.NUMBER, "50") == 50
        assert decode_value(SettingType.NUMBER, "2.5") == 2.5
        assert decode_value(SettingType.JSON, '{"a": 1}') == {"a": 1}
        assert decode_value(SettingType.STRING, "hello") == "hello"

    def test_strict_decode_raises_on_bad_json(self):
        with pytest.raises(ValueError):
            decode_value(SettingType.JSON, "{not json")

    def test_display_decode_never_raises(self):
        assert decode_for_display(SettingType.JSON, "{not json") == "{not json"
        assert decode_for_display(SettingType.NUMBER, "lots") == 0

    @pytest.mark.parametrize(
        "setting_type,raw",
        [
            (SettingType.BOOLEAN, True),
            (SettingType.NUMBER, 12),
            (SettingType.NUMBER, 0.25),
            (SettingType.JSON, {"featured": ["books", "furniture"]}),
            (SettingType.STRING, "Welcome"),
        ],
    )
    def test_coerced_values_decode_back(self, setting_type, raw):
        stored = coerce_value("key", setting_type, raw)
        assert decode_value(setting_type, stored) == raw


# =============================================================================
# Reads
# =============================================================================


class TestGetSetting:
    """Tests for cached, fail-open reads."""

    async def test_returns_typed_seed_values(self, service):
        assert await service.get_setting("maintenance_mode") is False
        assert await service.get_setting("api_enabled") is True
        assert await service.get_setting("max_products_per_user") == 50
        assert await service.get_setting("site_name") == "Campus Marketplace"
        assert await service.get_setting("featured_categories") == [
            "electronics",
            "books-stationary",
            "furniture",
        ]

    async def test_unknown_key_returns_default(self, service):
        assert await service.get_setting("does_not_exist") is None
        assert await service.get_setting("does_not_exist", "fallback") == "fallback"

    async def test_read_populates_cache(self, service, settings_cache):
        await service.get_setting("maintenance_mode")
        assert "maintenance_mode" in settings_cache

    async def test_cached_value_served_until_invalidated(
        self, service, db_session, settings_cache
    ):
        assert await service.get_setting("maintenance_mode", False) is False

        # Change the row behind the cache's back
        await db_session.execute(
            update(SystemSetting)
            .where(SystemSetting.key == "maintenance_mode")
            .values(value="true")
        )
        assert await service.get_setting("maintenance_mode", False) is False

        settings_cache.invalidate_all()
        assert await service.get_setting("maintenance_mode", False) is True

    async def test_undecodable_value_returns_default(self, service, db_session):
        await db_session.execute(
            update(SystemSetting)
            .where(SystemSetting.key == "featured_categories")
            .values(value="{broken")
        )
        assert await service.get_setting("featured_categories", []) == []

    async def test_unreachable_store_fails_open(self):
        service = SettingsService(unreachable_session(), SettingsCache())

        assert await service.get_setting("maintenance_mode", False) is False
        assert await service.read_with_default("registration_enabled", True) is True
        assert await service.read_with_default("api_enabled", True) is True

    async def test_strict_fetch_propagates_store_errors(self):
        service = SettingsService(unreachable_session(), SettingsCache())

        with pytest.raises(OperationalError):
            await service.fetch_setting("maintenance_mode")


class TestAdminReads:
    """Tests for the admin-console views."""

    async def test_get_all_settings_grouped_by_category(self, service):
        grouped = await service.get_all_settings()

        assert set(grouped) == {"system", "features", "general", "limits", "security"}
        assert sum(len(rows) for rows in grouped.values()) == len(SETTINGS_SEED)
        system_keys = [row["key"] for row in grouped["system"]]
        assert system_keys == sorted(system_keys)

        row = next(r for r in grouped["limits"] if r["key"] == "max_products_per_user")
        assert row["value"] == 50
        assert row["type"] == "number"

    async def test_get_setting_row_unknown_key(self, service):
        with pytest.raises(SettingNotFoundError) as exc_info:
            await service.get_setting_row("nope")
        assert exc_info.value.key == "nope"

    async def test_get_setting_row_shows_raw_text_for_bad_json(self, service, db_session):
        await db_session.execute(
            update(SystemSetting)
            .where(SystemSetting.key == "featured_categories")
            .values(value="{broken")
        )
        row = await service.get_setting_row("featured_categories")
        assert row["value"] == "{broken"

    async def test_public_status_defaults(self, service):
        status = await service.public_status()
        assert status == PUBLIC_STATUS_DEFAULTS

    async def test_public_status_fails_open(self):
        service = SettingsService(unreachable_session(), SettingsCache())

        status = await service.public_status()

        assert status == PUBLIC_STATUS_DEFAULTS
        assert status["maintenance_message"] == DEFAULT_MAINTENANCE_MESSAGE


# =============================================================================
# Writes
# =============================================================================


class TestUpdateSetting:
    """Tests for single-setting updates."""

    async def test_update_coerces_and_persists(self, service, db_session, admin):
        value = await service.update_setting("max_products_per_user", "25", actor_id=admin.id)

        assert value == 25
        assert await stored_value(db_session, "max_products_per_user") == "25"
        assert await service.get_setting("max_products_per_user") == 25

        row = (
            await db_session.execute(
                select(SystemSetting).where(SystemSetting.key == "max_products_per_user")
            )
        ).scalar_one()
        assert row.updated_by == admin.id

    async def test_update_records_activity(self, service, db_session, admin):
        await service.update_setting(
            "site_name", "Campus Bazaar", actor_id=admin.id, source_ip="10.0.0.7"
        )

        entry = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == "setting_update")
            )
        ).scalar_one()
        assert entry.admin_id == admin.id
        assert entry.entity_type == "system_setting"
        assert entry.ip_address == "10.0.0.7"
        assert '"oldValue": "Campus Marketplace"' in entry.details_json
        assert '"newValue": "Campus Bazaar"' in entry.details_json

    async def test_update_invalidates_cache(self, service, settings_cache, admin):
        assert await service.get_setting("maintenance_mode") is False
        assert len(settings_cache) > 0

        await service.update_setting("maintenance_mode", True, actor_id=admin.id)

        assert len(settings_cache) == 0
        assert await service.get_setting("maintenance_mode") is True

    @pytest.mark.parametrize(
        "write",
        [
            lambda svc, actor: svc.update_setting("site_name", "Bazaar", actor_id=actor),
            lambda svc, actor: svc.update_settings_bulk([("site_name", "Bazaar")], actor_id=actor),
            lambda svc, actor: svc.toggle_maintenance(actor_id=actor),
            lambda svc, actor: svc.emergency_shutdown(actor_id=actor),
        ],
        ids=["single", "bulk", "maintenance", "shutdown"],
    )
    async def test_cache_cleared_only_after_commit(
        self, service, db_session, settings_cache, admin, monkeypatch, write
    ):
        pending_at_invalidation = []
        monkeypatch.setattr(
            settings_cache,
            "invalidate_all",
            lambda: pending_at_invalidation.append(db_session.in_transaction()),
        )

        await write(service, admin.id)

        assert pending_at_invalidation == [False]

    async def test_unknown_key_is_rejected_without_side_effects(
        self, service, db_session, settings_cache, admin
    ):
        await service.get_setting("maintenance_mode")
        cached_before = len(settings_cache)

        with pytest.raises(SettingNotFoundError):
            await service.update_setting("no_such_key", "x", actor_id=admin.id)

        assert await count_activity(db_session) == 0
        assert len(settings_cache) == cached_before

    async def test_invalid_value_is_rejected_without_side_effects(
        self, service, db_session, admin
    ):
        with pytest.raises(SettingsValidationError):
            await service.update_setting("max_images_per_product", "lots", actor_id=admin.id)

        assert await stored_value(db_session, "max_images_per_product") == "5"
        assert await count_activity(db_session) == 0


class TestBulkUpdate:
    """Tests for bulk updates with partial failure."""

    async def test_applies_valid_entries_and_reports_skipped(
        self, service, db_session, settings_cache, admin
    ):
        await service.get_setting("site_name")

        outcome = await service.update_settings_bulk(
            [
                ("site_name", "Campus Bazaar"),
                ("ghost_setting", "boo"),
                ("max_products_per_user", "many"),
                ("wishlist_enabled", False),
            ],
            actor_id=admin.id,
        )

        assert outcome.updates == [
            {"key": "site_name", "value": "Campus Bazaar"},
            {"key": "wishlist_enabled", "value": False},
        ]
        assert [s["key"] for s in outcome.skipped] == ["ghost_setting", "max_products_per_user"]
        assert outcome.skipped[0]["reason"] == "Setting not found"

        assert await stored_value(db_session, "site_name") == "Campus Bazaar"
        assert await stored_value(db_session, "max_products_per_user") == "50"
        assert await count_activity(db_session, "setting_update") == 2
        assert len(settings_cache) == 0

    async def test_empty_outcome_still_invalidates(self, service, settings_cache, admin):
        await service.get_setting("site_name")

        outcome = await service.update_settings_bulk([("ghost", 1)], actor_id=admin.id)

        assert outcome.updates == []
        assert len(settings_cache) == 0


class TestMaintenanceAndShutdown:
    """Tests for the maintenance toggle and the emergency shutdown."""

    async def test_toggle_flips_state(self, service, db_session, admin):
        assert await service.toggle_maintenance(actor_id=admin.id) is True
        assert await stored_value(db_session, "maintenance_mode") == "true"

        assert await service.toggle_maintenance(actor_id=admin.id) is False
        assert await stored_value(db_session, "maintenance_mode") == "false"

        assert await count_activity(db_session, "maintenance_toggle") == 2

    async def test_toggle_sees_fresh_state_after_own_write(self, service, admin):
        await service.toggle_maintenance(actor_id=admin.id)
        assert await service.get_setting("maintenance_mode") is True

    async def test_emergency_shutdown(self, service, db_session, admin):
        state = await service.emergency_shutdown(actor_id=admin.id, source_ip="10.0.0.1")

        assert state == {"api_enabled": False, "maintenance_mode": True}
        assert await stored_value(db_session, "api_enabled") == "false"
        assert await stored_value(db_session, "maintenance_mode") == "true"
        assert await service.get_setting("api_enabled") is False

        entry = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == "emergency_shutdown")
            )
        ).scalar_one()
        assert entry.entity_type == "system_setting"
        assert entry.ip_address == "10.0.0.1"

    async def test_emergency_shutdown_is_idempotent_but_audited_each_time(
        self, service, db_session, admin
    ):
        first = await service.emergency_shutdown(actor_id=admin.id)
        second = await service.emergency_shutdown(actor_id=admin.id)

        assert first == second
        assert await stored_value(db_session, "api_enabled") == "false"
        assert await count_activity(db_session, "emergency_shutdown") == 2


class TestSeedDefaults:
    """Tests for insert-if-missing seeding."""

    async def test_seed_is_idempotent_and_keeps_changes(self, service, db_session, admin):
        await service.update_setting("site_name", "Campus Bazaar", actor_id=admin.id)

        inserted = await service.seed_defaults()

        assert inserted == 0
        assert await stored_value(db_session, "site_name") == "Campus Bazaar"

    async def test_seed_restores_missing_rows(self, service, db_session):
        await db_session.execute(
            delete(SystemSetting).where(SystemSetting.key == "wishlist_enabled")
        )

        assert await service.seed_defaults() == 1
        assert await service.get_setting("wishlist_enabled") is True
