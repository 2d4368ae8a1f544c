"""Session lifecycle: GitHub login, refresh rotation, logout, CLI tokens.

Learn: The refresh flow is the one place with a real race. Two requests
presenting the same refresh token must not both succeed, so rotation is
a conditional UPDATE:

    UPDATE users SET refresh_token = :new ... WHERE id = :id AND refresh_token = :presented

Only the request whose UPDATE hits the row wins. The loser sees rowcount 0
and gets the same "invalid" answer as a made-up token. Which failure case
applied (unknown, expired, already rotated) is never revealed.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.github import GitHubIdentityBridge
from configplaza.auth.tokens import (
    issue_cli_token,
    issue_refresh_token,
    issue_session_token,
    refresh_token_expiry,
)
from configplaza.db.models import CliToken, User, utcnow
from configplaza.errors import InvalidRequestError

logger = structlog.get_logger()


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    def __init__(self, db: AsyncSession, http_client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.bridge = GitHubIdentityBridge(db, http_client=http_client)

    # ─── Login ───────────────────────────────────────────

    async def login_with_github(
        self,
        code: Optional[str] = None,
        access_token: Optional[str] = None,
        redirect_uri: Optional[str] = None,
    ) -> tuple[User, SessionTokens]:
        """Exchange (if needed), fetch profile, upsert, then issue tokens."""
        if not (code and code.strip()) and not (access_token and access_token.strip()):
            raise InvalidRequestError("code or access_token is required", code="INVALID_TOKEN")

        if not (access_token and access_token.strip()):
            access_token = await self.bridge.exchange_code_for_token(code, redirect_uri)

        profile = await self.bridge.fetch_profile(access_token)
        user = await self.bridge.upsert_user(profile)

        tokens = await self.issue_session(user)
        logger.info("auth.github_login", user_id=str(user.id), github_id=user.github_id)
        return user, tokens

    async def issue_session(self, user: User) -> SessionTokens:
        """New session token plus a freshly stored 30-day refresh token."""
        refresh = issue_refresh_token()
        user.refresh_token = refresh
        user.refresh_token_expires_at = refresh_token_expiry()
        await self.db.commit()
        return SessionTokens(access_token=issue_session_token(user), refresh_token=refresh)

    # ─── Refresh ─────────────────────────────────────────

    async def refresh_session(self, presented: str) -> Optional[SessionTokens]:
        """Single-use rotation. Returns None for any invalid token."""
        if not presented:
            return None

        q = select(User).where(User.refresh_token == presented)
        result = await self.db.execute(q)
        user = result.scalars().first()

        now = utcnow()
        expires_at = _as_utc(user.refresh_token_expires_at) if user else None
        if user is None or expires_at is None or expires_at <= now:
            logger.info("auth.refresh_rejected", reason="unknown_or_expired")
            return None

        # rollback() expires `user`; keep the id for logging.
        user_id = user.id
        new_refresh = issue_refresh_token()
        rotated = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == presented)
            .values(
                refresh_token=new_refresh,
                refresh_token_expires_at=refresh_token_expiry(now),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if rotated.rowcount != 1:
            await self.db.rollback()
            logger.info("auth.refresh_rejected", reason="already_rotated", user_id=str(user_id))
            return None
        await self.db.commit()
        await self.db.refresh(user)

        return SessionTokens(
            access_token=issue_session_token(user),
            refresh_token=new_refresh,
        )

    async def logout(self, user_id: uuid.UUID) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token=None, refresh_token_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    # ─── CLI tokens ──────────────────────────────────────

    async def get_cli_token(self, user_id: uuid.UUID) -> Optional[CliToken]:
        q = select(CliToken).where(CliToken.user_id == user_id)
        result = await self.db.execute(q)
        return result.scalars().first()

    async def rotate_cli_token(self, user_id: uuid.UUID) -> CliToken:
        """Replace the user's CLI token (old value stops working), or create one."""
        cli_token = await self.get_cli_token(user_id)
        if cli_token is None:
            cli_token = CliToken(user_id=user_id, token=issue_cli_token())
            self.db.add(cli_token)
        else:
            cli_token.token = issue_cli_token()
            cli_token.created_at = utcnow()
            cli_token.last_used_at = None
        await self.db.commit()
        logger.info("cli_token.rotated", user_id=str(user_id))
        return cli_token
