"""Current user profile: /api/users/me."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.dependencies import get_current_user
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.schemas.auth import UserRead, UserUpdate
from configplaza.schemas.common import ApiResponse, ok
from configplaza.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/me", response_model=ApiResponse[UserRead])
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return ok(UserRead.from_user(await svc.get(user.user_id)))


@router.put("/me", response_model=ApiResponse[UserRead])
async def update_me(
    body: UserUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Update profile fields and settings; omitted fields stay as they are."""
    updated = await svc.update_profile(user.user_id, body.model_dump(exclude_unset=True))
    return ok(UserRead.from_user(updated))
