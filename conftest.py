import os
from decimal import Decimal
from typing import AsyncGenerator

# Tests run against an in-memory SQLite database unless told otherwise.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.common.config import get_settings
from libs.db.base import Base

# Import all models so metadata includes every table
from services.communications_service import models as _communications_models  # noqa: F401
from services.store_service import models as _store_models  # noqa: F401

from tests.fakes import FakeAuthGateway, FakeEmailClient, FakePaystack

# Clear cached settings to reload with the test env vars
get_settings.cache_clear()
settings = get_settings()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_EXCHANGE_RATE = Decimal("1500")


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory database per test.
    StaticPool keeps every session on the single connection that holds it.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def paystack() -> FakePaystack:
    return FakePaystack()


@pytest.fixture
def exchange_rate() -> Decimal:
    return TEST_EXCHANGE_RATE


@pytest_asyncio.fixture
async def store_client(
    db_session, auth_gateway, email_client, paystack, exchange_rate
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient for the store app with the database, auth provider, email
    function and Paystack replaced by in-process fakes.
    """
    from libs.db.session import get_async_db
    from services.store_service.app.main import app
    from services.store_service.dependencies import (
        get_auth_gateway,
        get_cart_state,
        get_checkout_service,
        get_store_email_client,
    )
    from services.store_service.services.cart_state import CartState
    from services.store_service.services.checkout import CheckoutService

    async def _fixed_rate() -> Decimal:
        return exchange_rate

    async def _checkout_service(cart: CartState = Depends(get_cart_state)):
        return CheckoutService(
            db_session,
            cart=cart,
            paystack=paystack,
            email_client=email_client,
            rate_fetcher=_fixed_rate,
        )

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_auth_gateway] = lambda: auth_gateway
    app.dependency_overrides[get_store_email_client] = lambda: email_client
    app.dependency_overrides[get_checkout_service] = _checkout_service

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def communications_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    from libs.db.session import get_async_db
    from services.communications_service.app.main import app

    app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def function_headers() -> dict:
    """Headers the storefront sends when invoking a function."""
    return {
        "Authorization": f"Bearer {settings.SUPABASE_ANON_KEY}",
        "apikey": settings.SUPABASE_ANON_KEY,
    }
