"""Shared test fixtures."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from huellitas.db.base import Base
# Import all models to register with Base.metadata
import huellitas.db.models  # noqa: F401
from huellitas.services.push.relay import PushRelayClient
from huellitas.services.templates import seed_default_templates

RELAY_URL = "http://relay.test/send-push-notification"


@pytest.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Seed default templates (mirrors main.py lifespan)
    async with async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)() as seed_session:
        await seed_default_templates(seed_session)
        await seed_session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


class RelayRecorder:
    """httpx.MockTransport handler that records requests and replays a canned answer."""

    def __init__(self, status_code: int = 200, payload: dict | None = None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"success": True}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def relay_recorder():
    return RelayRecorder()


@pytest.fixture
def relay(relay_recorder):
    return PushRelayClient(RELAY_URL, timeout=5.0, transport=httpx.MockTransport(relay_recorder))


@pytest.fixture
def make_relay():
    """Build a relay client answering with the given status and JSON body."""

    def _make(status_code: int = 200, payload: dict | None = None, handler=None):
        recorder = RelayRecorder(status_code, payload)
        client = PushRelayClient(RELAY_URL, timeout=5.0, transport=httpx.MockTransport(handler or recorder))
        return client, recorder

    return _make


@pytest.fixture
def app(session_factory, db_engine, relay):
    """Application wired to the in-memory DB and a mocked relay."""
    from huellitas.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    _app.state.redis = None
    _app.state.relay = relay
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
