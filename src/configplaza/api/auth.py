"""Auth API: GitHub login, token refresh, validation, logout.

Learn: Routes for the session lifecycle:
- POST /auth/github/callback → OAuth code (or GitHub token) → {token, refreshToken, user}
- POST /auth/refresh         → single-use refresh token → new pair
- GET  /auth/validate        → {userId} for a live session
- POST /auth/logout          → drop the stored refresh token

These live outside /api because the web app's OAuth redirect lands here.
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.dependencies import get_current_user
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.errors import InvalidRequestError, UnauthorizedError
from configplaza.schemas.auth import (
    AuthResult,
    GitHubCallbackRequest,
    LogoutResult,
    RefreshRequest,
    TokenPair,
    UserRead,
    ValidateResult,
)
from configplaza.schemas.common import ApiResponse, ok
from configplaza.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def get_github_client() -> Optional[httpx.AsyncClient]:
    """HTTP client for GitHub calls. None = the bridge opens its own."""
    return None


def _svc(
    db: AsyncSession = Depends(get_db),
    http_client: Optional[httpx.AsyncClient] = Depends(get_github_client),
) -> AuthService:
    return AuthService(db, http_client=http_client)


# ─── GitHub login ────────────────────────────────────────


@router.post("/github/callback", response_model=ApiResponse[AuthResult])
async def github_callback(body: GitHubCallbackRequest, svc: AuthService = Depends(_svc)):
    """Log in with an OAuth code or an already obtained GitHub access token."""
    user, tokens = await svc.login_with_github(
        code=body.code,
        access_token=body.access_token,
        redirect_uri=body.redirect_uri,
    )
    return ok(
        AuthResult(
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=UserRead.from_user(user),
        )
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Rotate the refresh token. Each refresh token works exactly once."""
    if not body.refresh_token.strip():
        raise InvalidRequestError("refreshToken is required")

    tokens = await svc.refresh_session(body.refresh_token)
    if tokens is None:
        raise UnauthorizedError("Invalid or expired refresh token")
    return ok(TokenPair(access_token=tokens.access_token, refresh_token=tokens.refresh_token))


# ─── Validate / logout ──────────────────────────────────


@router.get("/validate", response_model=ApiResponse[ValidateResult])
async def validate(user: CurrentUser = Depends(get_current_user)):
    return ok(ValidateResult(user_id=user.user_id))


@router.post("/logout", response_model=ApiResponse[LogoutResult])
async def logout(
    user: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    await svc.logout(user.user_id)
    return ok(LogoutResult())
