"""Tests for listing and report moderation in the admin console."""

import pytest
from sqlalchemy import select

from app.db.models import ActivityLog, Product, ProductReport, ReportReason, ReportStatus
from conftest import admin_headers, create_listing, create_student, user_headers


@pytest.fixture
async def seller(db_session):
    return await create_student(db_session, email="seller@campus.edu", full_name="Sam Seller")


async def file_report(db_session, product, reporter, reason=ReportReason.SPAM):
    report = ProductReport(product_id=product.id, reporter_id=reporter.id, reason=reason)
    db_session.add(report)
    await db_session.commit()
    await db_session.refresh(report, attribute_names=["product", "reporter", "reviewer"])
    return report


async def actions(db_session) -> list[str]:
    result = await db_session.execute(select(ActivityLog.action).order_by(ActivityLog.created_at))
    return list(result.scalars().all())


# =============================================================================
# Listings
# =============================================================================


class TestAdminProducts:
    """Tests for /api/admin/products."""

    async def test_list_includes_hidden_and_seller(self, client, db_session, moderator, seller):
        await create_listing(db_session, seller, title="Visible")
        await create_listing(db_session, seller, title="Hidden", is_active=False)

        response = await client.get("/api/admin/products", headers=admin_headers(moderator))

        data = response.json()
        assert data["pagination"]["total"] == 2
        row = data["products"][0]
        assert row["seller_name"] == "Sam Seller"
        assert row["seller_email"] == "seller@campus.edu"
        assert row["condition"] == "good"

    async def test_status_filters(self, client, db_session, moderator, seller):
        await create_listing(db_session, seller, title="Visible")
        await create_listing(db_session, seller, title="Hidden", is_active=False)
        headers = admin_headers(moderator)

        inactive = await client.get(
            "/api/admin/products", params={"status": "inactive"}, headers=headers
        )
        assert [p["title"] for p in inactive.json()["products"]] == ["Hidden"]

        flagged = await client.get(
            "/api/admin/products", params={"status": "flagged"}, headers=headers
        )
        assert flagged.json()["products"] == []

    async def test_categories(self, client, db_session, moderator, seller):
        await create_listing(db_session, seller, category="furniture")
        await create_listing(db_session, seller, category="furniture")
        await create_listing(db_session, seller, category="electronics")

        response = await client.get(
            "/api/admin/products/meta/categories", headers=admin_headers(moderator)
        )

        assert response.json() == [
            {"category": "furniture", "count": 2},
            {"category": "electronics", "count": 1},
        ]

    async def test_toggle_visibility(self, client, db_session, moderator, seller):
        product = await create_listing(db_session, seller)
        headers = admin_headers(moderator)

        hidden = await client.patch(f"/api/admin/products/{product.id}/toggle", headers=headers)
        assert hidden.json() == {"message": "Product deactivated successfully", "is_active": False}

        shown = await client.patch(f"/api/admin/products/{product.id}/toggle", headers=headers)
        assert shown.json()["is_active"] is True

        assert await actions(db_session) == ["hide_product", "show_product"]

    async def test_flag_and_unflag(self, client, db_session, moderator, seller):
        product = await create_listing(db_session, seller)
        headers = admin_headers(moderator)

        flagged = await client.post(
            f"/api/admin/products/{product.id}/flag",
            json={"reason": "Looks counterfeit"},
            headers=headers,
        )
        assert flagged.status_code == 200

        detail = await client.get(f"/api/admin/products/{product.id}", headers=headers)
        assert detail.json()["is_flagged"] is True
        assert detail.json()["flag_reason"] == "Looks counterfeit"
        assert detail.json()["flagged_at"] is not None

        unflagged = await client.post(f"/api/admin/products/{product.id}/unflag", headers=headers)
        assert unflagged.status_code == 200

        detail = await client.get(f"/api/admin/products/{product.id}", headers=headers)
        assert detail.json()["is_flagged"] is False
        assert detail.json()["flag_reason"] is None

    async def test_flag_requires_reason(self, client, db_session, moderator, seller):
        product = await create_listing(db_session, seller)

        response = await client.post(
            f"/api/admin/products/{product.id}/flag",
            json={"reason": "<b></b>"},
            headers=admin_headers(moderator),
        )
        assert response.status_code == 422

    async def test_unflag_not_flagged(self, client, db_session, moderator, seller):
        product = await create_listing(db_session, seller)

        response = await client.post(
            f"/api/admin/products/{product.id}/unflag", headers=admin_headers(moderator)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Product is not flagged"

    async def test_delete_requires_admin(self, client, db_session, moderator, admin, seller):
        product = await create_listing(db_session, seller)
        url = f"/api/admin/products/{product.id}"
        headers = admin_headers(admin)

        forbidden = await client.delete(url, headers=admin_headers(moderator))
        assert forbidden.status_code == 403

        response = await client.delete(url, headers=headers)
        assert response.status_code == 200
        assert (await db_session.execute(select(Product))).scalars().all() == []
        assert await actions(db_session) == ["delete_product"]

    async def test_unknown_product(self, client, moderator):
        response = await client.patch(
            "/api/admin/products/missing/toggle", headers=admin_headers(moderator)
        )
        assert response.status_code == 404


# =============================================================================
# Reports
# =============================================================================


class TestAdminReports:
    """Tests for /api/admin/reports."""

    async def test_list_with_names(self, client, db_session, moderator, seller, student):
        product = await create_listing(db_session, seller, title="Suspicious phone")
        await file_report(db_session, product, student, ReportReason.FRAUD)

        response = await client.get("/api/admin/reports", headers=admin_headers(moderator))

        data = response.json()
        assert data["pagination"]["total"] == 1
        row = data["reports"][0]
        assert row["product_title"] == "Suspicious phone"
        assert row["reporter_email"] == student.email
        assert row["seller_name"] == "Sam Seller"
        assert row["status"] == "pending"
        assert row["reviewer_name"] is None

    async def test_filters(self, client, db_session, moderator, seller, student):
        product = await create_listing(db_session, seller)
        await file_report(db_session, product, student, ReportReason.FRAUD)
        await file_report(db_session, product, seller, ReportReason.SPAM)
        headers = admin_headers(moderator)

        fraud = await client.get("/api/admin/reports", params={"reason": "fraud"}, headers=headers)
        assert fraud.json()["pagination"]["total"] == 1

        resolved = await client.get(
            "/api/admin/reports", params={"status": "resolved"}, headers=headers
        )
        assert resolved.json()["reports"] == []

    async def test_update_status_records_reviewer(
        self, client, db_session, moderator, seller, student
    ):
        product = await create_listing(db_session, seller)
        report = await file_report(db_session, product, student)
        headers = admin_headers(moderator)

        response = await client.patch(
            f"/api/admin/reports/{report.id}/status", json={"status": "resolved"}, headers=headers
        )
        assert response.status_code == 200

        detail = (await client.get(f"/api/admin/reports/{report.id}", headers=headers)).json()
        assert detail["status"] == "resolved"
        assert detail["reviewed_by"] == moderator.id
        assert detail["reviewer_name"] == moderator.full_name
        assert detail["reviewed_at"] is not None

        entry = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == "update_report_status")
            )
        ).scalar_one()
        assert entry.entity_type == "product_report"

    async def test_back_to_pending_clears_reviewer(
        self, client, db_session, moderator, seller, student
    ):
        product = await create_listing(db_session, seller)
        report = await file_report(db_session, product, student)
        headers = admin_headers(moderator)
        await client.patch(
            f"/api/admin/reports/{report.id}/status", json={"status": "reviewed"}, headers=headers
        )

        await client.patch(
            f"/api/admin/reports/{report.id}/status", json={"status": "pending"}, headers=headers
        )

        detail = (await client.get(f"/api/admin/reports/{report.id}", headers=headers)).json()
        assert detail["status"] == "pending"
        assert detail["reviewed_by"] is None
        assert detail["reviewed_at"] is None

    async def test_invalid_status(self, client, db_session, moderator, seller, student):
        product = await create_listing(db_session, seller)
        report = await file_report(db_session, product, student)

        response = await client.patch(
            f"/api/admin/reports/{report.id}/status",
            json={"status": "escalated"},
            headers=admin_headers(moderator),
        )
        assert response.status_code == 422

    async def test_unknown_report(self, client, moderator):
        response = await client.get("/api/admin/reports/missing", headers=admin_headers(moderator))
        assert response.status_code == 404

    async def test_summary(self, client, db_session, moderator, seller, student):
        product = await create_listing(db_session, seller)
        first = await file_report(db_session, product, student, ReportReason.FRAUD)
        await file_report(db_session, product, seller, ReportReason.FRAUD)
        await file_report(db_session, product, student, ReportReason.SPAM)
        first.status = ReportStatus.DISMISSED
        await db_session.commit()

        response = await client.get(
            "/api/admin/reports/stats/summary", headers=admin_headers(moderator)
        )

        assert response.json() == {
            "pending": 2,
            "reviewed": 0,
            "resolved": 0,
            "dismissed": 1,
            "total": 3,
            "byReason": [{"reason": "fraud", "count": 2}, {"reason": "spam", "count": 1}],
        }

    async def test_student_token_rejected(self, client, student):
        response = await client.get("/api/admin/reports", headers=user_headers(student))
        assert response.status_code == 401
