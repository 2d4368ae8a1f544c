"""Schemas for auth, CLI tokens and the user profile."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from configplaza.db.models import Role, Theme
from configplaza.schemas.common import CamelModel


# ─── Auth ────────────────────────────────────────────────


class GitHubCallbackRequest(CamelModel):
    code: Optional[str] = None
    access_token: Optional[str] = None
    redirect_uri: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: str = ""


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class ValidateResult(CamelModel):
    user_id: uuid.UUID


class LogoutResult(CamelModel):
    logged_out: bool = True


# ─── Users ───────────────────────────────────────────────


class UserSettings(CamelModel):
    theme: Theme = Theme.SYSTEM
    notifications_enabled: bool = True


class UserRead(CamelModel):
    id: uuid.UUID
    github_id: str
    username: str
    email: str
    avatar_url: str
    bio: str
    role: Role
    settings: UserSettings
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user) -> "UserRead":
        return cls(
            id=user.id,
            github_id=user.github_id,
            username=user.username,
            email=user.email,
            avatar_url=user.avatar_url,
            bio=user.bio,
            role=user.role,
            settings=UserSettings(
                theme=user.theme,
                notifications_enabled=user.notifications_enabled,
            ),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=1, max_length=64)
    email: Optional[str] = Field(None, max_length=256)
    avatar_url: Optional[str] = Field(None, max_length=512)
    bio: Optional[str] = Field(None, max_length=1024)
    theme: Optional[Theme] = None
    notifications_enabled: Optional[bool] = None


class AuthResult(CamelModel):
    token: str
    refresh_token: str
    user: UserRead


# ─── CLI tokens ──────────────────────────────────────────


class CliTokenRead(CamelModel):
    id: uuid.UUID
    token: str
    created_at: datetime
    last_used_at: Optional[datetime] = None
