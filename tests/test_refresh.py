"""Refresh token rotation tests.

Learn: A refresh token is single use. Presenting it rotates the pair;
presenting the same value again (replay, or a second tab racing the
first) gets 401 with no hint of why.
"""

import asyncio
from datetime import timedelta

import pytest

from configplaza.auth.tokens import validate_session_token
from configplaza.db.models import utcnow
from configplaza.services.auth_service import AuthService


async def _issue(db_session, user):
    return await AuthService(db_session).issue_session(user)


@pytest.mark.asyncio
async def test_refresh_rotates_pair(unauthenticated_client, db_session, alice):
    tokens = await _issue(db_session, alice)

    r = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": tokens.refresh_token})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["refreshToken"] != tokens.refresh_token
    assert validate_session_token(data["accessToken"])["sub"] == str(alice.id)

    await db_session.refresh(alice)
    assert alice.refresh_token == data["refreshToken"]


@pytest.mark.asyncio
async def test_refresh_token_is_single_use(unauthenticated_client, db_session, alice):
    tokens = await _issue(db_session, alice)

    first = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": tokens.refresh_token})
    assert first.status_code == 200

    replay = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": tokens.refresh_token})
    assert replay.status_code == 401
    assert replay.json()["error"]["message"] == "Invalid or expired refresh token"

    # The rotated token still works
    rotated = first.json()["data"]["refreshToken"]
    again = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": rotated})
    assert again.status_code == 200


@pytest.mark.asyncio
async def test_expired_refresh_token_is_401(unauthenticated_client, db_session, alice):
    tokens = await _issue(db_session, alice)
    alice.refresh_token_expires_at = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    r = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": tokens.refresh_token})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_refresh_token_is_401(unauthenticated_client, alice):
    r = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": "made-up"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_blank_refresh_token_is_400(unauthenticated_client):
    r = await unauthenticated_client.post("/auth/refresh", json={"refreshToken": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == {
        "code": "INVALID_REQUEST",
        "message": "refreshToken is required",
    }


@pytest.mark.asyncio
async def test_racing_refreshes_only_one_wins(session_factory, db_session, alice):
    """Two sessions present the same token at once; exactly one rotation succeeds."""
    tokens = await _issue(db_session, alice)

    async def attempt():
        async with session_factory() as session:
            return await AuthService(session).refresh_session(tokens.refresh_token)

    results = await asyncio.gather(attempt(), attempt())
    winners = [r for r in results if r is not None]
    assert len(winners) == 1


class _RotatedFirst:
    """Session wrapper: another client rotates the token right before our UPDATE."""

    def __init__(self, session, rotate):
        self._session = session
        self._rotate = rotate

    def __getattr__(self, name):
        return getattr(self._session, name)

    async def execute(self, statement, *args, **kwargs):
        if statement.is_dml:
            await self._rotate()
        return await self._session.execute(statement, *args, **kwargs)


@pytest.mark.asyncio
async def test_losing_rotation_returns_none(session_factory, db_session, alice):
    """Learn: The loser's rollback expires its loaded User; rejection must not touch it."""
    tokens = await _issue(db_session, alice)
    rotated = []

    async def rotate_elsewhere():
        async with session_factory() as other:
            rotated.append(await AuthService(other).refresh_session(tokens.refresh_token))

    async with session_factory() as session:
        result = await AuthService(_RotatedFirst(session, rotate_elsewhere)).refresh_session(
            tokens.refresh_token
        )

    assert result is None
    assert rotated[0] is not None
    await db_session.refresh(alice)
    assert alice.refresh_token == rotated[0].refresh_token
