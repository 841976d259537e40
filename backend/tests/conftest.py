"""Pytest configuration and fixtures."""

import os
import shutil
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Create a temporary directory for the application's default SQLite file
_test_tmp_dir = tempfile.mkdtemp(prefix="marketplace_test_")

# Set config BEFORE importing app modules
os.environ["MARKETPLACE_CONFIG_PATH"] = _test_tmp_dir
os.environ["MARKETPLACE_JWT_SECRET_KEY"] = "test-signing-key-for-the-marketplace-suite-0123456789"
os.environ.pop("MARKETPLACE_DATABASE_URL", None)
os.environ.pop("MARKETPLACE_ADMIN_JWT_SECRET_KEY", None)

from app.db import get_db  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.models import Admin, AdminRole, Product, ProductCondition, Profile, User  # noqa: E402
from app.main import app  # noqa: E402
from app.services.auth import create_admin_token, create_user_token, hash_password  # noqa: E402
from app.services.settings import SettingsService  # noqa: E402
from app.services.settings_cache import SettingsCache  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture
def settings_cache() -> SettingsCache:
    """Fresh settings cache for each test."""
    return SettingsCache(ttl=60.0)


@pytest.fixture
async def seeded_settings(db_session, settings_cache):
    """Insert the default settings rows."""
    await SettingsService(db_session, settings_cache).seed_defaults()
    await db_session.commit()


# =============================================================================
# HTTP client
# =============================================================================


def _override_db(db_session):
    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    return override_get_db


@pytest.fixture
async def client(db_session, settings_cache, seeded_settings):
    """Create a test client with database and settings cache overrides."""
    app.dependency_overrides[get_db] = _override_db(db_session)
    previous_cache = app.state.settings_cache
    app.state.settings_cache = settings_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.state.settings_cache = previous_cache
    app.dependency_overrides.clear()


@pytest.fixture
async def lenient_client(db_session, settings_cache, seeded_settings):
    """Client that turns unhandled server errors into 500 responses."""
    app.dependency_overrides[get_db] = _override_db(db_session)
    previous_cache = app.state.settings_cache
    app.state.settings_cache = settings_cache

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.state.settings_cache = previous_cache
    app.dependency_overrides.clear()


# =============================================================================
# Accounts
# =============================================================================


async def create_admin(
    db_session,
    role: AdminRole = AdminRole.ADMIN,
    email: str | None = None,
    is_active: bool = True,
) -> Admin:
    """Insert an admin console account with ``TEST_PASSWORD``."""
    admin = Admin(
        email=email or f"{role.value}@campus.edu",
        password_hash=hash_password(TEST_PASSWORD),
        full_name=f"Test {role.value}",
        role=role,
        is_active=is_active,
    )
    db_session.add(admin)
    await db_session.commit()
    return admin


async def create_student(
    db_session,
    email: str = "student@campus.edu",
    full_name: str = "Test Student",
    college: str = "North Campus",
) -> User:
    """Insert a student account (with profile) using ``TEST_PASSWORD``."""
    user = User(email=email, password_hash=hash_password(TEST_PASSWORD))
    user.profile = Profile(full_name=full_name, college=college, phone="555-0100")
    db_session.add(user)
    await db_session.commit()
    return user


async def create_listing(
    db_session,
    owner: User,
    title: str = "Desk lamp",
    price: int = 250,
    category: str = "furniture",
    is_active: bool = True,
) -> Product:
    """Insert a listing owned by ``owner``."""
    product = Product(
        user_id=owner.id,
        title=title,
        description="Barely used",
        price=price,
        category=category,
        condition=ProductCondition.GOOD,
        college=owner.profile.college if owner.profile else None,
        is_active=is_active,
    )
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product, attribute_names=["owner"])
    return product


def admin_headers(admin: Admin) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_admin_token(admin.id, admin.role.value)}"}


def user_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_user_token(user.id)}"}


@pytest.fixture
async def super_admin(db_session) -> Admin:
    return await create_admin(db_session, AdminRole.SUPER_ADMIN)


@pytest.fixture
async def admin(db_session) -> Admin:
    return await create_admin(db_session, AdminRole.ADMIN)


@pytest.fixture
async def moderator(db_session) -> Admin:
    return await create_admin(db_session, AdminRole.MODERATOR)


@pytest.fixture
async def student(db_session) -> User:
    return await create_student(db_session)


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
