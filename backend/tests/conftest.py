"""Shared fixtures for backend tests.

Each test runs against its own in-memory SQLite database; the app's
``get_db`` dependency is overridden to hand out sessions bound to it.
"""

from __future__ import annotations

import base64

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from subplatform.config import settings
from subplatform.db.engine import enable_sqlite_foreign_keys, get_db
from subplatform.db.models import Base
from subplatform.main import app
from subplatform.services import admin_user_service, plan_service, product_service, user_service
from subplatform.utils.metrics import metrics


@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    """Lowest bcrypt cost keeps hashing out of the test runtime."""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


# ── Database ────────────────────────────────────────────────────


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(eng.sync_engine)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ── HTTP client ─────────────────────────────────────────────────


def _override_get_db(session_factory):
    async def override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_db


@pytest.fixture
async def client(session_factory):
    """Async test client for the FastAPI app bound to the test database."""
    app.dependency_overrides[get_db] = _override_get_db(session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Factories ───────────────────────────────────────────────────


def basic_auth_headers(email: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{email}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def basic_auth():
    """Build Basic ``Authorization`` headers for arbitrary credentials."""
    return basic_auth_headers


@pytest.fixture
def make_product(db):
    async def _make(name: str = "Acme", *, is_active: bool = True):
        product, api_key = await product_service.create_product(db, name=name, is_active=is_active)
        await db.commit()
        return product, api_key

    return _make


@pytest.fixture
def make_admin(db):
    async def _make(
        email: str = "admin@example.com",
        password: str = "admin123",
        *,
        role: str = "SUPER_ADMIN",
        is_active: bool = True,
        name: str = "Admin",
    ):
        admin = await admin_user_service.create_admin(
            db, email=email, password=password, name=name, role=role
        )
        if not is_active:
            admin.is_active = False
        await db.commit()
        return admin

    return _make


@pytest.fixture
def make_plan(db):
    async def _make(product_id: str, slug: str = "pro", *, price: int = 1900, is_active: bool = True):
        plan = await plan_service.create_plan(
            db,
            product_id=product_id,
            name=slug.title(),
            slug=slug,
            price=price,
            max_properties=5,
            features=["reports", "exports"],
            is_active=is_active,
        )
        await db.commit()
        return plan

    return _make


@pytest.fixture
def make_user(db):
    async def _make(user_id: str = "user_1", email: str = "jane@example.com"):
        user = await user_service.create_user(db, user_id=user_id, email=email, name="Jane")
        await db.commit()
        return user

    return _make


@pytest.fixture
async def super_admin(make_admin):
    """A SUPER_ADMIN and the headers that authenticate as it."""
    admin = await make_admin("root@example.com", "s3cret!", role="SUPER_ADMIN")
    return admin, basic_auth_headers("root@example.com", "s3cret!")


@pytest.fixture
async def plain_admin(make_admin):
    """An ADMIN and the headers that authenticate as it."""
    admin = await make_admin("ops@example.com", "0ps-pass", role="ADMIN")
    return admin, basic_auth_headers("ops@example.com", "0ps-pass")
