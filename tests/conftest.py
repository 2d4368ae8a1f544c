"""Test fixtures: a throwaway SQLite database per test, real auth, fake GitHub.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite file (tmp_path) with the schema created
   from Base.metadata, so nothing leaks between tests.
2. get_db is overridden to open a NEW session per request from the test's
   session factory, exactly like production. `db_session` is a separate
   session for seeding and for checking what the API wrote (call
   `await db_session.refresh(obj)` after a request).
3. Auth is NOT mocked. `client` carries a real session JWT for alice, and
   CLI tests send her real X-CLI-TOKEN, so the authenticator chain runs.
4. GitHub is an httpx.MockTransport plugged in through get_github_client.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from configplaza.api.auth import get_github_client
from configplaza.auth.tokens import issue_cli_token, issue_session_token
from configplaza.db.engine import get_db
from configplaza.db.models import (
    RESOURCE_MODELS,
    Base,
    CliToken,
    ResourceKind,
    User,
    UserLike,
)
from configplaza.main import app


# ═══════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for seeding and assertions (separate from request sessions)."""
    async with session_factory() as session:
        yield session


# ═══════════════════════════════════════════════════════════
# Seed helpers
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def make_user(db_session):
    """Factory: a User with a CLI token, committed."""

    async def _make(username: str = "alice", github_id: Optional[str] = None) -> User:
        user = User(
            github_id=github_id or str(uuid.uuid4().int % 10**9),
            username=username,
            email=f"{username}@example.com",
            avatar_url=f"https://avatars.example.com/{username}.png",
        )
        db_session.add(user)
        await db_session.flush()
        db_session.add(CliToken(user_id=user.id, token=issue_cli_token()))
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture()
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture()
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture()
async def cli_token_of(db_session):
    """Look up a user's current CLI token string."""

    async def _get(user: User) -> str:
        result = await db_session.execute(select(CliToken.token).where(CliToken.user_id == user.id))
        return result.scalar_one()

    return _get


@pytest_asyncio.fixture()
async def make_resource(db_session):
    """Factory: any likeable resource, owned by `owner`, committed.

    Solutions get a fresh agent config unless one is passed.
    """

    async def _make(kind: ResourceKind, owner: User, **fields):
        model = RESOURCE_MODELS[kind]
        if kind is ResourceKind.SOLUTION and "agent_config_id" not in fields:
            agent = await _make(ResourceKind.AGENT_CONFIG, owner)
            fields["agent_config_id"] = agent.id
        fields.setdefault("name", f"{kind.value}-{uuid.uuid4().hex[:6]}")
        resource = model(user_id=owner.id, **fields)
        db_session.add(resource)
        await db_session.commit()
        return resource

    return _make


@pytest_asyncio.fixture()
async def like(db_session):
    """Record a like the way the like service does: row plus counter."""

    async def _like(user: User, resource) -> None:
        db_session.add(
            UserLike(user_id=user.id, resource_id=resource.id, resource_type=resource.kind.value)
        )
        resource.likes += 1
        await db_session.commit()

    return _like


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_session_token(user)}"}


@pytest_asyncio.fixture()
async def auth_headers():
    """Session-token headers for any seeded user."""
    return bearer


# ═══════════════════════════════════════════════════════════
# HTTP clients
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def override_db(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(override_db):
    """HTTP client with no credentials. Pass headers per request to act as someone."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def client(override_db, alice):
    """HTTP client signed in as alice with a real session token."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=bearer(alice)) as ac:
        yield ac


# ═══════════════════════════════════════════════════════════
# Fake GitHub
# ═══════════════════════════════════════════════════════════


@dataclass
class FakeGitHub:
    """What the fake GitHub answers, plus every request it saw."""

    access_token: str = "gho_test_token"
    profile: dict = field(
        default_factory=lambda: {
            "id": 555,
            "login": "alice",
            "email": "alice@example.com",
            "avatar_url": "https://avatars.githubusercontent.com/u/555",
            "name": "Alice",
            "bio": "builds agents",
        }
    )
    token_status: int = 200
    token_body: Optional[dict] = None
    user_status: int = 200
    requests: list = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/login/oauth/access_token":
            body = self.token_body if self.token_body is not None else {
                "access_token": self.access_token,
                "token_type": "bearer",
            }
            return httpx.Response(self.token_status, json=body)
        if request.url.path == "/user":
            if self.user_status != 200:
                return httpx.Response(self.user_status, json={"message": "Bad credentials"})
            return httpx.Response(200, json=self.profile)
        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest_asyncio.fixture()
async def github(override_db, monkeypatch):
    """Route the auth endpoints' GitHub calls to a FakeGitHub."""
    from configplaza.config import settings

    monkeypatch.setattr(settings, "github_client_id", "test-client-id")
    monkeypatch.setattr(settings, "github_client_secret", "test-client-secret-value")

    fake = FakeGitHub()

    async def override_github_client():
        async with fake.client() as http:
            yield http

    app.dependency_overrides[get_github_client] = override_github_client
    yield fake
    app.dependency_overrides.pop(get_github_client, None)
