"""Test fixtures — an isolated in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets a fresh in-memory SQLite engine (aiosqlite). StaticPool
   keeps the single connection alive, so every session sees the same data.
2. Tables are created from the models, not migrations.
3. The app's get_db, get_settings and get_mailer dependencies are
   overridden: one session per test, fast bcrypt rounds, media written
   to tmp_path, and a mailer that records messages instead of sending.

Auth is NOT mocked: tests register and log in through the real routes.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from socialnet.auth.dependencies import get_mailer
from socialnet.config import Settings, get_settings
from socialnet.db.engine import get_db
from socialnet.db.models import Base
from socialnet.main import app


class RecordingMailer:
    """Stands in for Mailer; keeps every message for inspection."""

    def __init__(self):
        self.sent = []

    async def send(self, message) -> bool:
        self.sent.append(message)
        return True

    def last_token(self, recipient: str) -> str:
        """The token at the end of the newest link mailed to `recipient`."""
        for message in reversed(self.sent):
            if message.recipient == recipient:
                return message.template_params["link"].rsplit("/", 1)[-1]
        raise AssertionError(f"no mail sent to {recipient}")


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite://",
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        bcrypt_rounds=4,
        media_root=str(tmp_path / "media"),
    )


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session over a throwaway in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session, test_settings, mailer):
    """HTTP client running the real app against the per-test database."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Account helpers ────────────────────────────────────


@pytest.fixture()
def make_account(client, mailer):
    """Factory: register (and optionally verify) an account through the API.

    Returns a dict with id, username, email and password.
    """

    async def _make(username=None, password="secret1", verify=False):
        username = username or f"u{uuid.uuid4().hex[:8]}"
        email = f"{username}@example.com"
        r = await client.post(
            "/api/v1/users/register",
            json={
                "username": username,
                "fullName": "Test Person",
                "email": email,
                "password": password,
            },
        )
        assert r.status_code == 201, r.text
        if verify:
            token = mailer.last_token(email)
            r2 = await client.get(f"/api/v1/users/verify-email/{token}")
            assert r2.status_code == 200, r2.text
        return {
            "id": r.json()["data"]["id"],
            "username": username,
            "email": email,
            "password": password,
        }

    return _make


@pytest.fixture()
def login(client):
    """Factory: log in and return Bearer headers plus the token pair.

    Cookies set by the login response are dropped, so several accounts
    can be used side by side through explicit headers.
    """

    async def _login(account):
        r = await client.post(
            "/api/v1/users/login",
            json={"identifier": account["email"], "password": account["password"]},
        )
        assert r.status_code == 200, r.text
        client.cookies.clear()
        data = r.json()["data"]
        return {
            "headers": {"Authorization": f"Bearer {data['accessToken']}"},
            "access_token": data["accessToken"],
            "refresh_token": data["refreshToken"],
        }

    return _login
