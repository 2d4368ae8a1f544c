"""Request identity and the current-user resolver.

Learn: Whatever authenticated the request (session JWT or CLI token),
downstream code sees the same Identity shape and the same CurrentUser
answers. Nothing here reads ambient request state: the resolved identity
is passed in explicitly, so policy code stays framework-free.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

AUTH_METHOD_SESSION = "session"
AUTH_METHOD_CLI_TOKEN = "cli-token"


@dataclass(frozen=True)
class Identity:
    """Claims for an authenticated principal."""

    subject: Optional[str]
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    auth_method: str = AUTH_METHOD_SESSION
    authenticated: bool = True

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        return cls(
            subject=claims.get("sub"),
            username=claims.get("name"),
            email=claims.get("email"),
            role=claims.get("role"),
            auth_method=AUTH_METHOD_SESSION,
        )

    @classmethod
    def from_user(cls, user, auth_method: str) -> "Identity":
        return cls(
            subject=str(user.id),
            username=user.username,
            email=user.email,
            role=user.role,
            auth_method=auth_method,
        )


class CurrentUser:
    """Read-only view of the request's identity.

    Learn: is_authenticated comes from the identity itself, never from
    "was some auth header present". user_id is None (not an exception)
    when the subject is missing or not a UUID.
    """

    __slots__ = ("identity",)

    def __init__(self, identity: Optional[Identity] = None):
        self.identity = identity

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None and self.identity.authenticated

    @property
    def user_id(self) -> Optional[uuid.UUID]:
        if not self.is_authenticated or not self.identity.subject:
            return None
        try:
            return uuid.UUID(self.identity.subject)
        except (ValueError, TypeError, AttributeError):
            return None

    @property
    def username(self) -> Optional[str]:
        return self.identity.username if self.is_authenticated else None

    @property
    def email(self) -> Optional[str]:
        return self.identity.email if self.is_authenticated else None

    @property
    def auth_method(self) -> Optional[str]:
        return self.identity.auth_method if self.is_authenticated else None

    def __repr__(self) -> str:
        return f"CurrentUser(user_id={self.user_id}, auth_method={self.auth_method})"


ANONYMOUS = CurrentUser(None)
