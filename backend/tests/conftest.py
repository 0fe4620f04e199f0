"""
JunkHub Backend — Test Configuration (conftest.py)
====================================================

Shared fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    engine           fresh in-memory SQLite database with every table
    session_factory  sessions bound to that engine
    db               a session for arranging data and checking results
    client           HTTPX AsyncClient talking to a fresh app whose session
                     dependency points at the test database
    make_user / make_owner / make_admin / make_shop / make_product
                     persisted rows with sensible defaults
    auth_headers     Authorization header for any account

Arrange with `db` and commit before calling the API: the API runs in its own
session on the same connection.
"""

import os

# Must be set before any app import: settings and the engine read them once
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import itertools
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.auth.credentials import hash_password, issue_token
from app.database import Base, enable_sqlite_foreign_keys, get_db_session
from app.main import create_app
from app.models import Admin, Owner, Product, Shop, User
from app.models.enums import ProductStatus, ProductType, Role

DEFAULT_PASSWORD = "secret123"

_sequence = itertools.count(1)


def _next() -> int:
    return next(_sequence)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    API client for a fresh app instance.

    The session override mirrors get_db_session: commit on success,
    rollback on error.
    """
    test_app = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    test_app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db):
    async def factory(**overrides) -> User:
        n = _next()
        password = overrides.pop("password", DEFAULT_PASSWORD)
        values = {
            "email": f"user{n}@example.com",
            "first_name": "Juan",
            "last_name": f"Cruz{n}",
            "phone": "09171234567",
            "wishlist": [],
        }
        values.update(overrides)
        user = User(password_hash=await hash_password(password), **values)
        db.add(user)
        await db.commit()
        return user

    return factory


@pytest.fixture
def make_owner(db):
    async def factory(**overrides) -> Owner:
        n = _next()
        password = overrides.pop("password", DEFAULT_PASSWORD)
        values = {
            "email": f"owner{n}@example.com",
            "business_name": f"Scrap Yard {n}",
            "business_address": "12 Rizal St, Quezon City",
            "phone": "09181234567",
            "approved": True,
        }
        values.update(overrides)
        owner = Owner(password_hash=await hash_password(password), **values)
        db.add(owner)
        await db.commit()
        return owner

    return factory


@pytest.fixture
def make_admin(db):
    async def factory(**overrides) -> Admin:
        n = _next()
        password = overrides.pop("password", DEFAULT_PASSWORD)
        values = {"email": f"admin{n}@example.com", "name": f"Admin {n}"}
        values.update(overrides)
        admin = Admin(password_hash=await hash_password(password), **values)
        db.add(admin)
        await db.commit()
        return admin

    return factory


@pytest.fixture
def make_shop(db):
    async def factory(owner: Owner, **overrides) -> Shop:
        values = {
            "name": f"Junk Shop {_next()}",
            "description": "Sorted scrap and recyclables",
            "business_address": owner.business_address,
        }
        values.update(overrides)
        shop = Shop(owner_id=owner.id, **values)
        db.add(shop)
        await db.commit()
        return shop

    return factory


@pytest.fixture
def make_product(db):
    async def factory(shop: Shop, **overrides) -> Product:
        values = {
            "name": f"Copper Wire {_next()}",
            "description": "Stripped copper wire",
            "price": 100.0,
            "category": "Metals",
            "stock": 10,
            "type": ProductType.SELLING.value,
            "images": [],
            "status": ProductStatus.APPROVED.value,
        }
        values.update(overrides)
        product = Product(shop_id=shop.id, **values)
        db.add(product)
        await db.commit()
        return product

    return factory


def _role_of(account) -> Role:
    if isinstance(account, User):
        return Role.USER
    if isinstance(account, Owner):
        return Role.OWNER
    return Role.ADMIN


@pytest.fixture
def auth_headers():
    def factory(account) -> Dict[str, str]:
        token = issue_token(account.id, account.email, _role_of(account))
        return {"Authorization": f"Bearer {token}"}

    return factory
