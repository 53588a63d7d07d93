"""Shared test fixtures and configuration."""
import asyncio
import itertools
import pytest
import os
from typing import Dict, List, Set

import httpx
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Set test environment variables before importing app
os.environ.setdefault("TWILIO_ACCOUNT_SID", "test-sid")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15550000000")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from app.main import app
from app.db.database import get_db
from app.db.models import Base
from app.core.config import Settings
from app.core.dependencies import get_notifier, get_telephony_gateway
from app.core.exceptions import GatewayError
from app.services.call_session.models import UserInput
from app.services.call_session.notifier import ChangeNotifier
from app.services.call_session.store import CallSessionStore
from app.services.persistence.admins import AdminPersistenceService
from app.services.telephony.gateway import OutboundCall, TelephonyGateway

CALLER_NUMBER = "+15550000000"
ADMIN_PASSWORD = "testpass123"


class FakeGateway(TelephonyGateway):
    """Telephony gateway double that can answer calls through the store.

    ``answers`` maps a phone number to the keypad answer the callee gives.
    Numbers without an answer never respond; numbers in ``failing`` raise
    ``GatewayError``.
    """

    def __init__(self, session_factory, notifier: ChangeNotifier):
        self.session_factory = session_factory
        self.notifier = notifier
        self.answers: Dict[str, UserInput] = {}
        self.failing: Set[str] = set()
        self.placed: List[OutboundCall] = []
        self._ids = itertools.count(1)
        self._tasks: Set[asyncio.Task] = set()

    async def place_call(self, to: str) -> OutboundCall:
        if to in self.failing:
            raise GatewayError(f"Could not place call to {to}")

        call = OutboundCall(call_sid=f"CA{next(self._ids):032d}", to=to, from_number=CALLER_NUMBER)
        self.placed.append(call)

        answer = self.answers.get(to)
        if answer is not None:
            task = asyncio.create_task(self._answer(call.call_sid, answer))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return call

    async def _answer(self, call_sid: str, answer: UserInput) -> None:
        # Wait for the manager to create the session, then answer like the webhook does
        async with self.session_factory() as db:
            store = CallSessionStore(db, self.notifier)
            for _ in range(200):
                if await store.set_user_input(call_sid, answer):
                    return
                await asyncio.sleep(0.01)


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        twilio_account_sid="test-sid",
        twilio_auth_token="test-token",
        twilio_phone_number=CALLER_NUMBER,
        database_url="sqlite+aiosqlite:///:memory:",
        base_url="https://waitlist.example.com",
        call_timeout_seconds=0.5,
        gather_timeout_seconds=10,
    )


@pytest.fixture
async def test_db_engine(tmp_path):
    """Create test database engine.

    File-backed so concurrent sessions each get their own connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    """Fresh change notifier per test."""
    return ChangeNotifier()


@pytest.fixture
def store(test_db, notifier):
    """Call session store on the test database."""
    return CallSessionStore(test_db, notifier)


@pytest.fixture
def fake_gateway(session_factory, notifier):
    """Telephony gateway double."""
    return FakeGateway(session_factory, notifier)


@pytest.fixture
def other_worker_gateway(session_factory):
    """Gateway double whose answers are written by a worker with its own change feed."""
    return FakeGateway(session_factory, ChangeNotifier())


@pytest.fixture
def create_admin(session_factory):
    """Create an admin account that can sign in with a password."""
    async def _create(uid: str, password: str = ADMIN_PASSWORD, activated: bool = True):
        async with session_factory() as db:
            return await AdminPersistenceService(db).create_admin(
                uid, could_see_admin=True, admin_activated=activated, password=password
            )
    return _create


@pytest.fixture
async def api_client(session_factory, notifier, fake_gateway, test_settings, monkeypatch):
    """Async HTTP client for the app with test dependencies."""
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_telephony_gateway] = lambda: fake_gateway

    # Override settings in modules that use it
    monkeypatch.setattr("app.core.config.settings", test_settings)
    monkeypatch.setattr("app.core.dependencies.settings", test_settings)

    async with httpx.AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def clean_auth_sessions():
    """Clean up authentication sessions before and after tests."""
    from app.api import auth
    auth._sessions.clear()
    yield
    auth._sessions.clear()


@pytest.fixture
def login(api_client, clean_auth_sessions):
    """Log the API client in as a UID; the session cookie stays on the client."""
    async def _login(uid: str, password: str = ADMIN_PASSWORD) -> httpx.Response:
        return await api_client.post("/api/auth/login", json={"uid": uid, "password": password})
    return _login


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )
