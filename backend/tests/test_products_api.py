"""Tests for the public listing endpoints."""

import pytest
from sqlalchemy import select

from app.db.models import Product, ProductReport, ReportReason, WishlistItem
from app.services.products import search_categories
from conftest import admin_headers, create_listing, create_student, user_headers

NEW_LISTING = {
    "title": "Scientific calculator",
    "description": "<p>Works fine</p><script>alert(1)</script>",
    "price": 400,
    "category": "electronics",
    "condition": "like-new",
    "images": ["https://img.campus.edu/calc.jpg"],
}


@pytest.fixture
async def seller(db_session):
    return await create_student(
        db_session, email="seller@campus.edu", full_name="Sam Seller", college="South Campus"
    )


class TestSearchCategories:
    """Tests for keyword to category mapping."""

    def test_phrase_and_words(self):
        assert search_categories("laptop") == ["electronics"]
        assert search_categories("Desk and Kettle") == ["furniture", "kitchen-items"]
        assert search_categories("something else") == []


class TestListProducts:
    """Tests for GET /api/products."""

    async def test_only_active_listings(self, client, db_session, seller):
        await create_listing(db_session, seller, title="Desk lamp")
        await create_listing(db_session, seller, title="Hidden chair", is_active=False)

        response = await client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["products"][0]["title"] == "Desk lamp"
        assert data["products"][0]["seller_name"] == "Sam Seller"

    async def test_owner_sees_own_inactive(self, client, db_session, seller):
        await create_listing(db_session, seller, title="Desk lamp")
        await create_listing(db_session, seller, title="Hidden chair", is_active=False)

        response = await client.get(
            "/api/products", params={"userId": seller.id}, headers=user_headers(seller)
        )
        assert response.json()["total"] == 2

        anonymous = await client.get("/api/products", params={"userId": seller.id})
        assert anonymous.json()["total"] == 1

    async def test_search_matches_keyword_category(self, client, db_session, seller):
        await create_listing(db_session, seller, title="Dell Inspiron", category="electronics")
        await create_listing(db_session, seller, title="Bookshelf", category="furniture")

        response = await client.get("/api/products", params={"search": "laptop"})

        titles = [p["title"] for p in response.json()["products"]]
        assert titles == ["Dell Inspiron"]

    async def test_sort_and_paginate(self, client, db_session, seller):
        for title, price in [("A", 300), ("B", 100), ("C", 200)]:
            await create_listing(db_session, seller, title=title, price=price)

        response = await client.get(
            "/api/products", params={"sort": "price-low", "limit": 2, "offset": 1}
        )

        data = response.json()
        assert data["total"] == 3
        assert [p["price"] for p in data["products"]] == [200, 300]

    async def test_filter_by_category(self, client, db_session, seller):
        await create_listing(db_session, seller, title="Lamp", category="furniture")
        await create_listing(db_session, seller, title="Novel", category="books-stationary")

        response = await client.get("/api/products", params={"category": "books-stationary"})
        assert [p["title"] for p in response.json()["products"]] == ["Novel"]


class TestGetProduct:
    """Tests for GET /api/products/{id}."""

    async def test_contact_details_only_for_signed_in(self, client, db_session, seller, student):
        product = await create_listing(db_session, seller)

        anonymous = await client.get(f"/api/products/{product.id}")
        assert anonymous.status_code == 200
        assert anonymous.json()["seller_email"] is None

        signed_in = await client.get(f"/api/products/{product.id}", headers=user_headers(student))
        assert signed_in.json()["seller_email"] == "seller@campus.edu"
        assert signed_in.json()["seller_phone"] == "555-0100"

    async def test_views_counted_except_owner(self, client, db_session, seller, student):
        product = await create_listing(db_session, seller)

        await client.get(f"/api/products/{product.id}")
        await client.get(f"/api/products/{product.id}", headers=user_headers(student))
        await client.get(f"/api/products/{product.id}", headers=user_headers(seller))

        count = (
            await db_session.execute(select(Product.view_count).where(Product.id == product.id))
        ).scalar_one()
        assert count == 2

    async def test_not_found(self, client):
        response = await client.get("/api/products/missing")
        assert response.status_code == 404


class TestCreateProduct:
    """Tests for POST /api/products."""

    async def test_create(self, client, student):
        response = await client.post(
            "/api/products", json=NEW_LISTING, headers=user_headers(student)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == student.id
        assert data["description"] == "<p>Works fine</p>"
        assert data["images"] == ["https://img.campus.edu/calc.jpg"]
        assert data["is_active"] is True

    async def test_requires_sign_in(self, client):
        response = await client.post("/api/products", json=NEW_LISTING)
        assert response.status_code == 401

    async def test_suspended_student_rejected(self, client, db_session, student):
        student.is_suspended = True
        await db_session.commit()

        response = await client.post(
            "/api/products", json=NEW_LISTING, headers=user_headers(student)
        )
        assert response.status_code == 403

    async def test_listing_limit_from_settings(self, client, db_session, admin, student):
        await client.put(
            "/api/admin/settings/max_products_per_user",
            json={"value": 1},
            headers=admin_headers(admin),
        )
        await create_listing(db_session, student)

        response = await client.post(
            "/api/products", json=NEW_LISTING, headers=user_headers(student)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "You can have at most 1 active listings"

    async def test_image_limit_from_settings(self, client, admin, student):
        await client.put(
            "/api/admin/settings/max_images_per_product",
            json={"value": 1},
            headers=admin_headers(admin),
        )

        response = await client.post(
            "/api/products",
            json={**NEW_LISTING, "images": ["a.jpg", "b.jpg"]},
            headers=user_headers(student),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "A listing can have at most 1 images"


class TestOwnerActions:
    """Tests for update, toggle and delete by the listing's owner."""

    async def test_update_by_owner(self, client, db_session, seller):
        product = await create_listing(db_session, seller)

        response = await client.put(
            f"/api/products/{product.id}",
            json={**NEW_LISTING, "title": "Calculator (new battery)", "is_active": False},
            headers=user_headers(seller),
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Calculator (new battery)"
        assert response.json()["is_active"] is False

    async def test_update_by_someone_else(self, client, db_session, seller, student):
        product = await create_listing(db_session, seller)

        response = await client.put(
            f"/api/products/{product.id}", json=NEW_LISTING, headers=user_headers(student)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to update this product"

    async def test_toggle(self, client, db_session, seller):
        product = await create_listing(db_session, seller)

        response = await client.patch(
            f"/api/products/{product.id}/toggle", headers=user_headers(seller)
        )

        assert response.status_code == 200
        assert response.json() == {"is_active": False}

    async def test_delete_removes_references(self, client, db_session, seller, student):
        product = await create_listing(db_session, seller)
        db_session.add(WishlistItem(user_id=student.id, product_id=product.id))
        db_session.add(
            ProductReport(product_id=product.id, reporter_id=student.id, reason=ReportReason.SPAM)
        )
        await db_session.commit()

        response = await client.delete(f"/api/products/{product.id}", headers=user_headers(seller))

        assert response.status_code == 200
        for model in (Product, WishlistItem, ProductReport):
            rows = (await db_session.execute(select(model))).scalars().all()
            assert rows == []

    async def test_delete_by_someone_else(self, client, db_session, seller, student):
        product = await create_listing(db_session, seller)

        response = await client.delete(
            f"/api/products/{product.id}", headers=user_headers(student)
        )
        assert response.status_code == 403
