"""Test fixtures — in-memory SQLite, fake mailer, fake Google verifier.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets a fresh in-memory SQLite database (StaticPool keeps the
   single connection alive, so every session sees the same tables).
2. The app's get_db dependency is overridden to hand out sessions bound
   to that engine — one session per request, exactly like production.
3. The mailer and Google verifier are in-memory fakes passed straight
   into create_app(), so OTP codes can be read back without SMTP and
   identity tokens can be scripted without Google.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.auth.google import ExternalIdentity
from notevault.config import Settings
from notevault.db.engine import get_db
from notevault.db.models import Base
from notevault.errors import DeliveryError, InvalidTokenError
from notevault.main import create_app

TEST_JWT_SECRET = "test-jwt-secret-for-testing-only"


class FakeMailer:
    """Records every OTP instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send_otp(self, email: str, code: str) -> None:
        if self.fail:
            raise DeliveryError()
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        for to, code in reversed(self.sent):
            if to == email:
                return code
        raise AssertionError(f"no OTP sent to {email}")


class FakeIdentityVerifier:
    """Maps known provider tokens to identities; everything else is invalid."""

    def __init__(self):
        self.identities: dict[str, ExternalIdentity] = {}

    def register(self, token: str, subject: str, email: str, name: str) -> None:
        self.identities[token] = ExternalIdentity(subject=subject, email=email, name=name)

    async def verify_identity_token(self, token: str) -> ExternalIdentity:
        try:
            return self.identities[token]
        except KeyError:
            raise InvalidTokenError("Invalid Google token: signature verification failed")


class FakeClock:
    """Controllable clock for OTP expiry tests."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,  # bcrypt's minimum — keeps tests fast
        google_client_id="test-client-id.apps.googleusercontent.com",
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def identity_verifier() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture()
async def db_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app(test_settings, mailer, identity_verifier, session_factory):
    app = create_app(test_settings, mailer=mailer, identity_verifier=identity_verifier)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client running the real auth pipeline against the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sign_up(client, mailer):
    """Register + verify an account over HTTP; returns its session token.

    The client's cookie jar is cleared afterwards so tests choose
    explicitly which token (cookie or bearer) each request carries.
    """

    async def _sign_up(email: str, name: str = "Test User", password: str = "pw-123456") -> str:
        r = await client.post(
            "/api/auth/request-otp",
            json={"name": name, "email": email, "password": password},
        )
        assert r.status_code == 200, r.text
        r = await client.post(
            "/api/auth/verify-otp",
            json={"email": email, "otp": mailer.last_code(email)},
        )
        assert r.status_code == 200, r.text
        token = r.cookies["token"]
        client.cookies.clear()
        return token

    return _sign_up
