"""Listing queries and owner-side listing management."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import Product, ProductReport, User, WishlistItem
from app.services.settings import SettingsService

logger = get_logger(__name__)

DEFAULT_MAX_PRODUCTS_PER_USER = 50
DEFAULT_MAX_IMAGES_PER_PRODUCT = 5

# Search words that should also match a whole category
SEARCH_KEYWORD_CATEGORIES: dict[str, str] = {
    **dict.fromkeys(
        [
            "laptop", "laptops", "computer", "pc", "macbook", "phone", "mobile",
            "iphone", "android", "samsung", "tablet", "ipad", "headphones",
            "earphones", "earbuds", "airpods", "speaker", "charger", "cable",
            "mouse", "keyboard", "monitor", "printer", "camera", "calculator",
            "dell", "hp", "lenovo", "asus", "acer", "inspiron",
        ],
        "electronics",
    ),
    **dict.fromkeys(
        [
            "book", "books", "textbook", "textbooks", "notebook", "notes", "pen",
            "pencil", "stationary", "stationery", "paper", "novel", "fiction",
            "study", "material",
        ],
        "books-stationary",
    ),
    **dict.fromkeys(
        [
            "furniture", "chair", "desk", "table", "bed", "mattress", "shelf",
            "shelves", "cupboard", "wardrobe", "lamp", "fan", "mirror",
        ],
        "furniture",
    ),
    **dict.fromkeys(
        [
            "kitchen", "utensil", "utensils", "cookware", "pot", "pan", "plate",
            "dishes", "spoon", "fork", "knife", "blender", "mixer", "microwave",
            "kettle", "induction", "cooker", "bottle",
        ],
        "kitchen-items",
    ),
    **dict.fromkeys(
        [
            "vehicle", "vehicles", "cycle", "bicycle", "bike", "scooter", "scooty",
            "motorcycle", "activa", "honda", "hero", "tvs", "car",
        ],
        "vehicles",
    ),
    **dict.fromkeys(["free", "giveaway", "donate", "donation"], "giveaways"),
}

SORT_ORDERS = {
    "recent": Product.created_at.desc(),
    "price-low": Product.price.asc(),
    "price-high": Product.price.desc(),
    "popular": Product.view_count.desc(),
}


class ProductError(Exception):
    """Base exception for listing errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)


class ProductNotFoundError(ProductError):
    def __init__(self):
        super().__init__("Product not found", status_code=404)


class ProductPermissionError(ProductError):
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, status_code=403)


def search_categories(search: str) -> list[str]:
    """Categories implied by a search phrase, whole phrase first, then each word."""
    phrase = search.lower().strip()
    if phrase in SEARCH_KEYWORD_CATEGORIES:
        return [SEARCH_KEYWORD_CATEGORIES[phrase]]

    categories: list[str] = []
    for word in phrase.split():
        category = SEARCH_KEYWORD_CATEGORIES.get(word)
        if category and category not in categories:
            categories.append(category)
    return categories


class ProductService:
    """Public listing queries and owner-side create/update/delete."""

    def __init__(self, db: AsyncSession, settings_service: SettingsService | None = None):
        self.db = db
        self.settings_service = settings_service

    async def list_products(
        self,
        viewer: User | None = None,
        category: str | None = None,
        college: str | None = None,
        search: str | None = None,
        sort: str = "recent",
        limit: int = 20,
        offset: int = 0,
        user_id: str | None = None,
    ) -> tuple[list[Product], int]:
        """List listings with filters.

        Owners asking for their own listings also see inactive ones; everyone else
        only sees active listings.

        Returns:
            Tuple of (listings on the requested page, total matching listings).
        """
        query = select(Product)

        if user_id and viewer is not None and viewer.id == user_id:
            query = query.where(Product.user_id == user_id)
        else:
            query = query.where(Product.is_active.is_(True))
            if user_id:
                query = query.where(Product.user_id == user_id)

        if category:
            query = query.where(Product.category == category)
        if college:
            query = query.where(Product.college == college)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            text_match = [Product.title.ilike(pattern), Product.description.ilike(pattern)]
            categories = search_categories(search)
            if categories:
                query = query.where(or_(*text_match, Product.category.in_(categories)))
            else:
                query = query.where(or_(*text_match, Product.category.ilike(pattern)))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        order = SORT_ORDERS.get(sort, SORT_ORDERS["recent"])
        query = query.order_by(order, Product.id).offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_product(self, product_id: str) -> Product:
        """Get a listing by id.

        Raises:
            ProductNotFoundError: If it does not exist.
        """
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError()
        return product

    async def record_view(self, product: Product, viewer: User | None) -> None:
        """Count a view unless the owner is looking at their own listing."""
        if viewer is not None and viewer.id == product.user_id:
            return
        await self.db.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(view_count=Product.view_count + 1, updated_at=Product.updated_at)
        )

    async def _limit(self, key: str, default: int) -> int:
        if self.settings_service is None:
            return default
        value = await self.settings_service.read_with_default(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    async def create_product(self, owner: User, data: dict[str, Any]) -> Product:
        """Create a listing, enforcing the per-student listing and image limits.

        Raises:
            ProductError: If a limit would be exceeded.
        """
        max_images = await self._limit("max_images_per_product", DEFAULT_MAX_IMAGES_PER_PRODUCT)
        images = list(data.get("images") or [])
        if len(images) > max_images:
            raise ProductError(f"A listing can have at most {max_images} images")

        max_products = await self._limit("max_products_per_user", DEFAULT_MAX_PRODUCTS_PER_USER)
        active_count = (
            await self.db.execute(
                select(func.count())
                .select_from(Product)
                .where(Product.user_id == owner.id, Product.is_active.is_(True))
            )
        ).scalar() or 0
        if active_count >= max_products:
            raise ProductError(f"You can have at most {max_products} active listings")

        product = Product(
            user_id=owner.id,
            title=data["title"],
            description=data.get("description"),
            price=data["price"],
            category=data["category"],
            condition=data["condition"],
            negotiable=data.get("negotiable", False),
            college=data.get("college"),
        )
        product.images = images
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product, attribute_names=["owner"])

        logger.info("product_created", product_id=product.id, user_id=owner.id)
        return product

    async def _owned_product(self, product_id: str, owner: User, message: str) -> Product:
        product = await self.get_product(product_id)
        if product.user_id != owner.id:
            raise ProductPermissionError(message)
        return product

    async def update_product(
        self, product_id: str, owner: User, data: dict[str, Any]
    ) -> Product:
        """Replace a listing's details. Only the owner may do this."""
        product = await self._owned_product(
            product_id, owner, "Not authorized to update this product"
        )

        max_images = await self._limit("max_images_per_product", DEFAULT_MAX_IMAGES_PER_PRODUCT)
        images = list(data.get("images") or [])
        if len(images) > max_images:
            raise ProductError(f"A listing can have at most {max_images} images")

        product.title = data["title"]
        product.description = data.get("description")
        product.price = data["price"]
        product.category = data["category"]
        product.condition = data["condition"]
        product.negotiable = data.get("negotiable", False)
        product.college = data.get("college")
        product.is_active = data.get("is_active", True)
        product.images = images
        await self.db.flush()

        logger.info("product_updated", product_id=product.id)
        return product

    async def toggle_product(self, product_id: str, owner: User) -> bool:
        """Flip a listing's visibility and return the new state."""
        product = await self._owned_product(product_id, owner, "Not authorized")
        product.is_active = not product.is_active
        await self.db.flush()
        return product.is_active

    async def delete_product(self, product_id: str, owner: User) -> None:
        """Delete one of the owner's listings with its wishlist entries and reports."""
        product = await self._owned_product(
            product_id, owner, "Not authorized to delete this product"
        )
        await delete_products(self.db, [product.id])
        logger.info("product_deleted", product_id=product_id)


async def delete_products(db: AsyncSession, product_ids: list[str]) -> None:
    """Delete listings and every row that references them."""
    if not product_ids:
        return
    await db.execute(delete(WishlistItem).where(WishlistItem.product_id.in_(product_ids)))
    await db.execute(delete(ProductReport).where(ProductReport.product_id.in_(product_ids)))
    await db.execute(delete(Product).where(Product.id.in_(product_ids)))
