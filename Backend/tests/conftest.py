"""
Pytest configuration and fixtures.

Tests run against a throwaway SQLite database (aiosqlite) created per test,
with Clerk token verification replaced by a fixed table of fake tokens.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from storefront.core.config import get_settings
from storefront.core.db import DatabaseConnection, set_connection
from storefront.core.errors import Unauthorized
from storefront.payments import init_stripe
from storefront.repository import build_model_handles

STAFF_ORG_ID = "org_staff_test"
CLERK_FRONTEND_API = "clerk.storefront.test"

FAKE_TOKENS = {
    "staff-token": {"sub": "user_staff", "org_id": STAFF_ORG_ID},
    "customer-token": {"sub": "user_customer"},
    "other-org-token": {"sub": "user_other", "org_id": "org_someone_else"},
}

STAFF_HEADERS = {"Authorization": "Bearer staff-token"}
CUSTOMER_HEADERS = {"Authorization": "Bearer customer-token"}
OTHER_ORG_HEADERS = {"Authorization": "Bearer other-org-token"}


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Pin the settings the tests depend on and drop cached singletons."""
    monkeypatch.setenv("CLERK_STAFF_ORG_ID", STAFF_ORG_ID)
    monkeypatch.setenv("CLERK_FRONTEND_API", CLERK_FRONTEND_API)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "")
    get_settings.cache_clear()
    init_stripe.cache_clear()
    yield
    get_settings.cache_clear()
    init_stripe.cache_clear()


@pytest.fixture
def fake_clerk(monkeypatch):
    """Replace Clerk JWT verification with the FAKE_TOKENS table."""
    calls = []

    def verify(token: str) -> dict:
        calls.append(token)
        if token not in FAKE_TOKENS:
            raise Unauthorized("Invalid token")
        return dict(FAKE_TOKENS[token])

    monkeypatch.setattr("storefront.clerk_auth.verify_clerk_token", verify)
    return calls


@pytest.fixture
async def db_connection(tmp_path):
    """
    Fresh SQLite database installed as the process-wide connection.

    The schema is created on first connect, like a real deployment with
    DB_AUTO_CREATE enabled.
    """
    connection = DatabaseConnection(
        f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        auto_create=True,
    )
    set_connection(connection)
    build_model_handles.cache_clear()
    yield connection
    await connection.dispose()
    set_connection(None)
    build_model_handles.cache_clear()


@pytest.fixture
async def handles(db_connection):
    """Data-access handles bound to the test database."""
    return build_model_handles(await db_connection.connect())


@pytest.fixture
async def client(db_connection, fake_clerk):
    """AsyncClient against the real application."""
    from storefront.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac
