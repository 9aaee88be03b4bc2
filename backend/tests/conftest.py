"""Pytest configuration and fixtures for backend tests.

Both databases are file-backed SQLite under tmp_path (via aiosqlite), so no
external services are required. Time is driven by FrozenClock so expiry
can be tested without sleeping.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_JWT_SECRET = "test-secret-0123456789abcdefghijklmnopqrstuvwxyz"
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET

TEST_EMAIL = "shopper@example.com"
TEST_PASSWORD = "correct-horse-battery"

# 2023-11-14T22:13:20Z
START_MS = 1_700_000_000_000
DAY_SECONDS = 24 * 60 * 60


class FrozenClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now_ms += int(seconds * 1000) + ms


class FakeIdentityLookup:
    """In-memory identity collaborator for gate tests."""

    def __init__(self, *owner_ids: str):
        from storefront_auth.models.account import Identity

        self.identities = {
            owner_id: Identity(id=owner_id, email=f"{owner_id}@example.com", display_name=owner_id)
            for owner_id in owner_ids
        }
        self.calls = 0

    async def find_identity_by_id(self, owner_id: str):
        self.calls += 1
        return self.identities.get(owner_id)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing both databases at tmp_path."""
    from storefront_auth.core.config import Settings

    return Settings(
        _env_file=None,
        jwt_secret_key=TEST_JWT_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path}/app.db",
        session_store_url=f"sqlite+aiosqlite:///{tmp_path}/tokens.db",
        session_issue_retry_base_delay=0,
        log_format="dev",
        cors_origins="http://test",
    )


@pytest.fixture
def codec(clock):
    from storefront_auth.services.token_codec import TokenCodec

    return TokenCodec(secret=TEST_JWT_SECRET, clock=clock)


@pytest_asyncio.fixture
async def store(tmp_path, clock) -> AsyncGenerator:
    """A session token store on a fresh SQLite file."""
    from storefront_auth.services.session_store import SessionTokenStore

    store = SessionTokenStore.from_url(f"sqlite+aiosqlite:///{tmp_path}/tokens.db", clock=clock)
    await store.init_schema()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def accounts(tmp_path) -> AsyncGenerator:
    """An account directory on a fresh SQLite file."""
    from storefront_auth.services.identity import AccountDirectory

    directory = AccountDirectory.from_url(f"sqlite+aiosqlite:///{tmp_path}/app.db")
    await directory.init_schema()
    yield directory
    await directory.dispose()


@pytest_asyncio.fixture
async def container(settings, clock) -> AsyncGenerator:
    """Fully wired components with schemas created and the purge loop idle."""
    from storefront_auth.container import AuthContainer

    container = AuthContainer.from_settings(settings, clock=clock)
    await container.init_schema()
    yield container
    await container.shutdown()


@pytest_asyncio.fixture
async def async_client(container) -> AsyncGenerator[AsyncClient, None]:
    """Async test client over the app, without running the lifespan."""
    from storefront_auth.main import create_app

    app = create_app(container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def shopper(container):
    """An active account in the primary database."""
    return await container.accounts.create_account(TEST_EMAIL, TEST_PASSWORD, "Test Shopper")


@pytest_asyncio.fixture
async def login(async_client, shopper):
    """Log in via the API; returns a function taking an optional device id."""

    async def _login(device_id: str | None = None) -> dict:
        body = {"email": TEST_EMAIL, "password": TEST_PASSWORD}
        if device_id is not None:
            body["device_id"] = device_id
        response = await async_client.post("/auth/login", json=body)
        assert response.status_code == 200, response.text
        return response.json()

    return _login


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
