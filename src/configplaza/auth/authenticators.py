"""Authenticator chain: session JWT first, then the CLI-token gate.

Learn: An authenticator looks at a request and returns an Identity or
None ("no opinion"). The chain is a plain ordered list; the first
authenticator that produces an identity wins. So a valid session token
always takes precedence and the CLI gate only runs for requests that
are still anonymous.

Neither authenticator raises for a bad credential. A garbage
Authorization or X-CLI-TOKEN header leaves the request anonymous, so
public endpoints stay reachable.
"""

from typing import Awaitable, Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from configplaza.auth.identity import AUTH_METHOD_CLI_TOKEN, Identity
from configplaza.auth.tokens import validate_session_token
from configplaza.config import settings
from configplaza.db.models import CliToken, utcnow

logger = structlog.get_logger()

Authenticator = Callable[[Request, AsyncSession], Awaitable[Optional[Identity]]]


async def authenticate_session_token(
    request: Request, db: AsyncSession
) -> Optional[Identity]:
    """Bearer JWT from the Authorization header."""
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None

    claims = validate_session_token(token)
    if claims is None:
        return None
    return Identity.from_claims(claims)


async def authenticate_cli_token(
    request: Request, db: AsyncSession
) -> Optional[Identity]:
    """Exact-match lookup of the X-CLI-TOKEN header against cli_tokens.

    On a match, stamps last_used_at and commits before returning.
    """
    value = request.headers.get(settings.cli_token_header)
    if not value or not value.strip():
        return None

    q = select(CliToken).where(CliToken.token == value)
    result = await db.execute(q)
    cli_token = result.scalars().first()
    if cli_token is None:
        return None

    cli_token.last_used_at = utcnow()
    await db.commit()

    logger.info("cli_token.used", user_id=str(cli_token.user_id))
    return Identity.from_user(cli_token.user, AUTH_METHOD_CLI_TOKEN)


AUTHENTICATORS: list[Authenticator] = [
    authenticate_session_token,
    authenticate_cli_token,
]


async def resolve_identity(
    request: Request,
    db: AsyncSession,
    authenticators: Optional[list[Authenticator]] = None,
) -> Optional[Identity]:
    """Run the chain in order; first authenticated identity wins."""
    for authenticator in authenticators if authenticators is not None else AUTHENTICATORS:
        identity = await authenticator(request, db)
        if identity is not None and identity.authenticated:
            return identity
    return None
