"""Tests for the admin settings API and its effect on public traffic."""

from unittest.mock import AsyncMock, patch

from sqlalchemy import func, select

from app.api.feature_gate import API_DISABLED_MESSAGE
from app.db.models import ActivityLog, AdminRole, SystemSetting
from app.services.audit import AuditLogError, AuditLogService
from app.services.settings import DEFAULT_MAINTENANCE_MESSAGE
from conftest import TEST_PASSWORD, admin_headers, create_admin, user_headers


async def stored_value(db_session, key: str) -> str:
    result = await db_session.execute(select(SystemSetting.value).where(SystemSetting.key == key))
    return result.scalar_one()


# =============================================================================
# Reads
# =============================================================================


class TestReadSettings:
    """Tests for GET /api/admin/settings."""

    async def test_list_grouped_by_category(self, client, moderator):
        response = await client.get("/api/admin/settings", headers=admin_headers(moderator))

        assert response.status_code == 200
        settings = response.json()["settings"]
        assert set(settings) == {"system", "features", "general", "limits", "security"}

        limits = {row["key"]: row for row in settings["limits"]}
        assert limits["max_products_per_user"]["value"] == 50
        assert limits["max_products_per_user"]["type"] == "number"

    async def test_get_single_setting(self, client, admin):
        response = await client.get(
            "/api/admin/settings/featured_categories", headers=admin_headers(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["key"] == "featured_categories"
        assert data["type"] == "json"
        assert data["value"] == ["electronics", "books-stationary", "furniture"]

    async def test_get_unknown_setting(self, client, admin):
        response = await client.get("/api/admin/settings/nope", headers=admin_headers(admin))
        assert response.status_code == 404

    async def test_requires_token(self, client):
        response = await client.get("/api/admin/settings")
        assert response.status_code == 401

    async def test_rejects_student_token(self, client, student):
        response = await client.get("/api/admin/settings", headers=user_headers(student))
        assert response.status_code == 401


class TestPublicStatus:
    """Tests for GET /api/admin/settings/public/status."""

    async def test_unauthenticated_defaults(self, client):
        response = await client.get("/api/admin/settings/public/status")

        assert response.status_code == 200
        assert response.json() == {
            "maintenance_mode": False,
            "maintenance_message": DEFAULT_MAINTENANCE_MESSAGE,
            "registration_enabled": True,
            "login_enabled": True,
            "product_creation_enabled": True,
            "product_editing_enabled": True,
            "wishlist_enabled": True,
            "api_enabled": True,
        }

    async def test_reflects_updates(self, client, admin):
        await client.put(
            "/api/admin/settings/wishlist_enabled",
            json={"value": False},
            headers=admin_headers(admin),
        )

        response = await client.get("/api/admin/settings/public/status")
        assert response.json()["wishlist_enabled"] is False


# =============================================================================
# Writes
# =============================================================================


class TestUpdateSetting:
    """Tests for PUT /api/admin/settings/{key}."""

    async def test_update_number(self, client, db_session, admin):
        response = await client.put(
            "/api/admin/settings/max_products_per_user",
            json={"value": "25"},
            headers=admin_headers(admin),
        )

        assert response.status_code == 200
        assert response.json() == {
            "key": "max_products_per_user",
            "value": 25,
            "message": "Setting updated successfully",
        }
        assert await stored_value(db_session, "max_products_per_user") == "25"

    async def test_update_is_audited_with_client_address(self, client, db_session, admin):
        await client.put(
            "/api/admin/settings/site_name",
            json={"value": "Campus Bazaar"},
            headers={**admin_headers(admin), "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )

        entry = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == "setting_update")
            )
        ).scalar_one()
        assert entry.admin_id == admin.id
        assert entry.ip_address == "203.0.113.9"

    async def test_invalid_number(self, client, db_session, admin):
        response = await client.put(
            "/api/admin/settings/max_products_per_user",
            json={"value": "twenty"},
            headers=admin_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid number value for max_products_per_user"
        assert await stored_value(db_session, "max_products_per_user") == "50"

    async def test_unknown_key(self, client, db_session, admin):
        response = await client.put(
            "/api/admin/settings/ghost", json={"value": 1}, headers=admin_headers(admin)
        )

        assert response.status_code == 404
        count = (await db_session.execute(select(func.count(ActivityLog.id)))).scalar()
        assert count == 0

    async def test_moderator_cannot_write(self, client, db_session, moderator):
        response = await client.put(
            "/api/admin/settings/maintenance_mode",
            json={"value": True},
            headers=admin_headers(moderator),
        )

        assert response.status_code == 403
        assert await stored_value(db_session, "maintenance_mode") == "false"

    async def test_deactivated_admin_rejected(self, client, db_session):
        inactive = await create_admin(
            db_session, AdminRole.ADMIN, email="gone@campus.edu", is_active=False
        )
        response = await client.put(
            "/api/admin/settings/maintenance_mode",
            json={"value": True},
            headers=admin_headers(inactive),
        )
        assert response.status_code == 403

    async def test_audit_failure_aborts_update(self, lenient_client, db_session, admin):
        with patch.object(
            AuditLogService,
            "record",
            AsyncMock(side_effect=AuditLogError("Failed to record activity 'setting_update'")),
        ):
            response = await lenient_client.put(
                "/api/admin/settings/maintenance_mode",
                json={"value": True},
                headers=admin_headers(admin),
            )

        assert response.status_code == 500
        assert await stored_value(db_session, "maintenance_mode") == "false"

        products = await lenient_client.get("/api/products")
        assert products.status_code == 200


class TestBulkUpdate:
    """Tests for PUT /api/admin/settings/bulk."""

    async def test_partial_application(self, client, db_session, admin):
        response = await client.put(
            "/api/admin/settings/bulk",
            json={
                "settings": [
                    {"key": "site_name", "value": "Campus Bazaar"},
                    {"key": "ghost", "value": "x"},
                    {"key": "max_images_per_product", "value": 8},
                ]
            },
            headers=admin_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Updated 2 settings"
        assert data["updates"] == [
            {"key": "site_name", "value": "Campus Bazaar"},
            {"key": "max_images_per_product", "value": 8},
        ]
        assert data["skipped"] == [{"key": "ghost", "reason": "Setting not found"}]
        assert await stored_value(db_session, "max_images_per_product") == "8"

    async def test_empty_list_rejected(self, client, admin):
        response = await client.put(
            "/api/admin/settings/bulk", json={"settings": []}, headers=admin_headers(admin)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Settings array required"


# =============================================================================
# Maintenance and emergency shutdown
# =============================================================================


class TestMaintenance:
    """Tests for the maintenance toggle and the public gate."""

    async def test_toggle_closes_and_reopens_public_api(self, client, admin):
        headers = admin_headers(admin)

        response = await client.post("/api/admin/settings/maintenance/toggle", headers=headers)
        assert response.status_code == 200
        assert response.json() == {
            "maintenance_mode": True,
            "message": "Maintenance mode enabled",
        }

        blocked = await client.get("/api/products")
        assert blocked.status_code == 503
        assert blocked.json()["detail"] == {
            "error": "Service unavailable",
            "message": DEFAULT_MAINTENANCE_MESSAGE,
            "maintenance": True,
        }

        response = await client.post("/api/admin/settings/maintenance/toggle", headers=headers)
        assert response.json()["maintenance_mode"] is False
        assert (await client.get("/api/products")).status_code == 200

    async def test_admin_and_health_stay_reachable(self, client, admin):
        headers = admin_headers(admin)
        await client.put(
            "/api/admin/settings/maintenance_mode", json={"value": True}, headers=headers
        )

        assert (await client.get("/api/health")).status_code == 200
        assert (await client.get("/api/admin/health")).status_code == 200
        assert (await client.get("/api/admin/settings", headers=headers)).status_code == 200
        assert (await client.get("/api/admin/dashboard/overview", headers=headers)).status_code == 200

        status = await client.get("/api/admin/settings/public/status")
        assert status.status_code == 200
        assert status.json()["maintenance_mode"] is True

    async def test_custom_maintenance_message(self, client, admin):
        headers = admin_headers(admin)
        await client.put(
            "/api/admin/settings/bulk",
            json={
                "settings": [
                    {"key": "maintenance_message", "value": "Back after exams"},
                    {"key": "maintenance_mode", "value": True},
                ]
            },
            headers=headers,
        )

        response = await client.get("/api/products")
        assert response.status_code == 503
        assert response.json()["detail"]["message"] == "Back after exams"

    async def test_toggle_requires_admin_role(self, client, moderator):
        response = await client.post(
            "/api/admin/settings/maintenance/toggle", headers=admin_headers(moderator)
        )
        assert response.status_code == 403


class TestEmergencyShutdown:
    """Tests for POST /api/admin/settings/emergency/shutdown."""

    async def test_shutdown_blocks_public_api(self, client, db_session, admin):
        response = await client.post(
            "/api/admin/settings/emergency/shutdown", headers=admin_headers(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["api_enabled"] is False
        assert data["maintenance_mode"] is True

        blocked = await client.get("/api/products")
        assert blocked.status_code == 503
        assert blocked.json()["detail"]["message"] == API_DISABLED_MESSAGE

        assert await stored_value(db_session, "api_enabled") == "false"
        assert await stored_value(db_session, "maintenance_mode") == "true"

    async def test_admin_login_still_works(self, client, admin):
        await client.post("/api/admin/settings/emergency/shutdown", headers=admin_headers(admin))

        response = await client.post(
            "/api/admin/auth/login", json={"email": admin.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 200

    async def test_repeated_shutdown_audited_twice(self, client, db_session, admin):
        headers = admin_headers(admin)
        await client.post("/api/admin/settings/emergency/shutdown", headers=headers)
        response = await client.post("/api/admin/settings/emergency/shutdown", headers=headers)

        assert response.status_code == 200
        count = (
            await db_session.execute(
                select(func.count(ActivityLog.id)).where(
                    ActivityLog.action == "emergency_shutdown"
                )
            )
        ).scalar()
        assert count == 2

    async def test_recovery_restores_public_api(self, client, admin):
        headers = admin_headers(admin)
        await client.post("/api/admin/settings/emergency/shutdown", headers=headers)
        await client.put(
            "/api/admin/settings/bulk",
            json={
                "settings": [
                    {"key": "api_enabled", "value": True},
                    {"key": "maintenance_mode", "value": False},
                ]
            },
            headers=headers,
        )

        assert (await client.get("/api/products")).status_code == 200
