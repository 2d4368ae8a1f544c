"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. They run the
authenticator chain once per request (FastAPI caches a dependency's
result within a request, so router-level and handler-level Depends
share it) and hand the handler an explicit CurrentUser.

Two auth mechanisms feed the same CurrentUser:
1. Bearer session JWT (web app)
2. X-CLI-TOKEN header (acp CLI)
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.authenticators import resolve_identity
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.errors import UnauthorizedError


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the identity, anonymous if nothing authenticates.

    Learn: This is the "soft" auth dependency. Used for endpoints that
    work both authenticated and unauthenticated (explore, public lists).
    """
    identity = await resolve_identity(request, db)
    return CurrentUser(identity)


async def get_current_user(
    current: CurrentUser = Depends(get_current_user_optional),
) -> CurrentUser:
    """Resolve the identity, 401 if nothing authenticates.

    Learn: This is the "hard" auth dependency. A token whose subject is
    not a user id counts as unauthenticated too.
    """
    if not current.is_authenticated or current.user_id is None:
        raise UnauthorizedError("Authentication required")
    return current
