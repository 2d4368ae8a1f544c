"""CLI token management: /api/cli-token.

Learn: The token is shown in full here (unlike hashed API keys) because
the user copies it into `acp login`. Rotating issues a new value and the
old one stops working immediately.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.dependencies import get_current_user
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.schemas.auth import CliTokenRead
from configplaza.schemas.common import ApiResponse, ok
from configplaza.services.auth_service import AuthService

router = APIRouter(prefix="/cli-token")


def _svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.get("", response_model=ApiResponse[Optional[CliTokenRead]])
async def get_cli_token(
    user: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Current CLI token, or null if the user has none."""
    cli_token = await svc.get_cli_token(user.user_id)
    return ok(CliTokenRead.model_validate(cli_token) if cli_token else None)


@router.post("/refresh", response_model=ApiResponse[CliTokenRead])
async def refresh_cli_token(
    user: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Replace the CLI token (or create one)."""
    cli_token = await svc.rotate_cli_token(user.user_id)
    return ok(CliTokenRead.model_validate(cli_token))
