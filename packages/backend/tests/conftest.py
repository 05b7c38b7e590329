"""Test fixtures — a throwaway SQLite database per test.

Each test gets its own database file under tmp_path with the schema
created from the ORM models, so tests never see each other's rows and
need no running PostgreSQL. The HTTP client opens a fresh session per
request, exactly like get_db does in production, which means commits
made by one request are visible to the next.

Environment is set before proposaldesk is imported: settings are read
once at import time.
"""

import os

os.environ.setdefault("PROPOSALDESK_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("PROPOSALDESK_BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from proposaldesk.auth.jwt import create_access_token
from proposaldesk.db.engine import get_db
from proposaldesk.db.models import Base, Role
from proposaldesk.main import app
from proposaldesk.services.user_service import UserService

PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'proposaldesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for arranging data and calling services directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app, real auth, test database.

    Only get_db is overridden. Every request has to bring its own bearer
    token (see auth_headers), so the whole verify → authorize → store
    pipeline runs in every API test.
    """

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def make_user(db_session):
    """Factory: await make_user(Role.STUDENT, "Ana") → persisted User."""
    counter = {"n": 0}

    async def _make(role: Role, name: str | None = None, email: str | None = None):
        counter["n"] += 1
        name = name or f"{role.value.title()} {counter['n']}"
        email = email or f"{role.value}{counter['n']}@uni.example"
        return await UserService(db_session).create_user(
            name=name, email=email, password=PASSWORD, role=role
        )

    return _make


@pytest_asyncio.fixture()
async def student(make_user):
    return await make_user(Role.STUDENT, "Alice Student")


@pytest_asyncio.fixture()
async def other_student(make_user):
    return await make_user(Role.STUDENT, "Bob Student")


@pytest_asyncio.fixture()
async def supervisor(make_user):
    return await make_user(Role.SUPERVISOR, "Dr. Carol")


@pytest_asyncio.fixture()
async def other_supervisor(make_user):
    return await make_user(Role.SUPERVISOR, "Dr. Dave")


@pytest_asyncio.fixture()
async def admin(make_user):
    return await make_user(Role.ADMIN, "Erin Admin")


@pytest.fixture()
def password():
    """The password every make_user() account is created with."""
    return PASSWORD


@pytest.fixture()
def auth_headers():
    """auth_headers(user) → {"Authorization": "Bearer <access token>"}."""

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers
