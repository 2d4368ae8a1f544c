"""GitHub identity bridge: OAuth code -> access token -> profile -> local User.

Learn: Three stages, each failing loudly with its own error:
1. exchange_code_for_token(): POST the code to GitHub's token endpoint
2. fetch_profile(): GET /user with the access token
3. upsert_user(): find-or-create the local User keyed by GitHub's numeric id

Provider failures raise GitHubAuthError (a 400-class UpstreamError with
the provider's status and body), missing client credentials raise
ConfigurationError, and database errors propagate untouched, so the
caller can tell "GitHub said no, try again" from "we broke".

HTTP calls use a bounded timeout, and cancelling the awaiting task
cancels the request.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.tokens import issue_api_token, issue_cli_token
from configplaza.config import settings
from configplaza.db.models import CliToken, User, new_uuid, utcnow
from configplaza.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger()

USER_AGENT = "acp/1.0"
EXCHANGE_FAILED = "GITHUB_EXCHANGE_FAILED"
AUTH_FAILED = "GITHUB_AUTH_FAILED"


class GitHubAuthError(UpstreamError):
    """GitHub rejected or garbled a token exchange or profile fetch."""

    code = AUTH_FAILED


class GitHubProfile(BaseModel):
    """The subset of GET /user we rely on."""

    id: int
    login: str
    email: Optional[str] = None
    avatar_url: str = ""
    name: Optional[str] = None
    bio: Optional[str] = None


class GitHubIdentityBridge:
    """Turns an OAuth code or GitHub access token into a local User."""

    def __init__(self, db: AsyncSession, http_client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self._http_client = http_client

    @asynccontextmanager
    async def _http(self):
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=settings.github_timeout_seconds) as client:
            yield client

    # ─── Stage 1: code exchange ──────────────────────────

    async def exchange_code_for_token(
        self, code: str, redirect_uri: Optional[str] = None
    ) -> str:
        if not settings.github_client_id or not settings.github_client_secret:
            raise ConfigurationError("GitHub client credentials are not configured")

        form = {
            "client_id": settings.github_client_id,
            "client_secret": settings.github_client_secret,
            "code": code,
        }
        if redirect_uri:
            form["redirect_uri"] = redirect_uri

        try:
            async with self._http() as client:
                resp = await client.post(
                    settings.github_token_url,
                    data=form,
                    headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                )
        except httpx.HTTPError as e:
            raise GitHubAuthError(
                f"GitHub token exchange failed: {type(e).__name__}", code=EXCHANGE_FAILED
            ) from e

        if resp.is_error:
            raise GitHubAuthError(
                f"GitHub token exchange failed: {resp.status_code} {resp.text}",
                provider_status=resp.status_code,
                provider_body=resp.text,
                code=EXCHANGE_FAILED,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise GitHubAuthError(
                "GitHub token exchange returned a malformed body",
                provider_status=resp.status_code,
                provider_body=resp.text,
                code=EXCHANGE_FAILED,
            ) from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            detail = payload.get("error_description") if isinstance(payload, dict) else None
            message = "GitHub did not return an access token"
            if detail:
                message = f"{message}: {detail}"
            raise GitHubAuthError(
                message,
                provider_status=resp.status_code,
                provider_body=resp.text,
                code=EXCHANGE_FAILED,
            )
        return access_token

    # ─── Stage 2: profile fetch ──────────────────────────

    async def fetch_profile(self, access_token: str) -> GitHubProfile:
        try:
            async with self._http() as client:
                resp = await client.get(
                    settings.github_user_url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Accept": "application/vnd.github+json",
                        "User-Agent": USER_AGENT,
                    },
                )
        except httpx.HTTPError as e:
            raise GitHubAuthError(f"GitHub user fetch failed: {type(e).__name__}") from e

        if resp.is_error:
            raise GitHubAuthError(
                f"GitHub user fetch failed: {resp.status_code} {resp.text}",
                provider_status=resp.status_code,
                provider_body=resp.text,
            )

        try:
            return GitHubProfile.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise GitHubAuthError(
                "GitHub user response could not be parsed",
                provider_status=resp.status_code,
                provider_body=resp.text,
            ) from e

    # ─── Stage 3: local upsert ───────────────────────────

    async def upsert_user(self, profile: GitHubProfile) -> User:
        """Find-or-create by github_id; new accounts get a CLI token too.

        Learn: Existing users only get their mutable profile synced. An
        empty avatar_url from GitHub never blanks a good stored one.
        Everything lands in one commit.
        """
        q = select(User).where(User.github_id == str(profile.id))
        result = await self.db.execute(q)
        user = result.scalars().first()

        if user is not None:
            user.username = profile.login
            user.email = profile.email or user.email
            if profile.avatar_url and profile.avatar_url.strip():
                user.avatar_url = profile.avatar_url
            user.bio = profile.bio or user.bio
            user.updated_at = utcnow()
            if not user.api_token:
                user.api_token = issue_api_token(user)
            await self.db.commit()
            logger.info("github.user_synced", user_id=str(user.id), github_id=user.github_id)
            return user

        user = User(
            id=new_uuid(),
            github_id=str(profile.id),
            username=profile.login,
            email=profile.email or "",
            avatar_url=profile.avatar_url or "",
            bio=profile.bio or "",
        )
        user.api_token = issue_api_token(user)
        self.db.add(user)
        self.db.add(CliToken(user_id=user.id, token=issue_cli_token()))
        await self.db.commit()

        logger.info("github.user_created", user_id=str(user.id), github_id=user.github_id)
        return user
