"""
Shared pytest fixtures for the league tests.

Everything runs against an in-memory SQLite database (aiosqlite) created per
test; API tests talk to the FastAPI app through httpx without a server.
"""
import os
import sys
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="league-media-"))

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import httpx
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.pool import StaticPool

from common import generate_id
from database import build_engine, build_sessionmaker, create_tables, get_session, PlayerORM
from players.functions import create_player_profile
from storage import LocalBlobStore
from tournaments.functions import create_tournament


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def make_player(session):
    """Factory for player profiles with zeroed statistics."""
    async def _make(name: str, is_admin: bool = False) -> PlayerORM:
        return await create_player_profile(
            session, generate_id(), f"{name.lower()}@example.com", name, is_admin=is_admin,
        )
    return _make


@pytest.fixture
def make_tournament(session):
    """Factory for an active tournament that started yesterday."""
    async def _make(name: str = "Copa Verão", **kwargs):
        now = datetime.now(timezone.utc)
        defaults = dict(
            description="",
            location="Praia de Copacabana",
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            categories=None,
            created_by="admin",
        )
        defaults.update(kwargs)
        return await create_tournament(session, name=name, **defaults)
    return _make


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "media", "/media")


@pytest.fixture
def app(sessionmaker, blob_store):
    from main import create_app

    app = create_app(lifespan=None)
    app.state.blob_store = blob_store

    async def _get_session():
        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _signed_up(client, sessionmaker, name, is_admin=False):
    email = f"{name.lower()}@example.com"
    resp = await client.post("/auth/register", json={"email": email, "password": "segredo123", "name": name})
    assert resp.status_code == 201, resp.text
    uid = resp.json()["identity"]["uid"]
    if is_admin:
        async with sessionmaker() as session:
            player = await session.get(PlayerORM, uid)
            player.is_admin = True
            await session.commit()
    resp = await client.post("/auth/login", json={"email": email, "password": "segredo123"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["identity"]["token"]
    return uid, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(client, sessionmaker):
    """(uid, headers) of a signed-in administrator."""
    return await _signed_up(client, sessionmaker, "Admin", is_admin=True)


@pytest.fixture
def sign_up(client, sessionmaker):
    async def _sign_up(name: str):
        return await _signed_up(client, sessionmaker, name)
    return _sign_up
