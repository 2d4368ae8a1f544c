"""Token issuer: session JWTs, refresh tokens, API tokens, CLI tokens.

Learn: Four credential types, each with a different lifetime:
- Session token: signed JWT, 12 hours, carries {sub, name, email, role}
- Refresh token: opaque random string, expiry tracked server-side (30 days)
- API token: opaque, assigned once per user and never rotated
- CLI token: "acp-" + 64 alphanumerics, sent by the acp CLI as X-CLI-TOKEN

Validation failures return None instead of raising. A bad token means
"not authenticated", never an error to surface. The one thing that does
raise is a weak signing key: that's a configuration error and must be
loud, at startup or at first use.
"""

import base64
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog

from configplaza.config import settings
from configplaza.errors import ConfigurationError

logger = structlog.get_logger()

MIN_KEY_BYTES = 16  # 128 bits for HS256
CLI_TOKEN_PREFIX = "acp-"
CLI_TOKEN_LENGTH = 64
_CLI_ALPHABET = string.ascii_letters + string.digits


def signing_key() -> bytes:
    """Return the session signing key, refusing keys shorter than 128 bits."""
    key = settings.jwt_secret.encode("utf-8")
    if len(key) < MIN_KEY_BYTES:
        raise ConfigurationError(
            f"JWT key must be at least {MIN_KEY_BYTES} characters "
            f"({MIN_KEY_BYTES * 8} bits) for {settings.jwt_algorithm} algorithm. "
            f"Current key length: {len(key) * 8} bits ({len(key)} bytes). "
            "Set ACP_JWT_SECRET to a longer value."
        )
    return key


def issue_session_token(user, expires_hours: Optional[int] = None) -> str:
    """Create a signed session token for a User."""
    key = signing_key()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "name": user.username,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=expires_hours or settings.session_token_expire_hours),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, key, algorithm=settings.jwt_algorithm)


def validate_session_token(token: str) -> Optional[dict]:
    """Verify signature, expiry (2 min skew) and issuer/audience if configured.

    Returns the claims dict, or None on any verification failure.
    """
    key = signing_key()
    options = {"require": ["exp", "sub"]}
    kwargs = {}
    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer
    if settings.jwt_audience:
        kwargs["audience"] = settings.jwt_audience
    else:
        options["verify_aud"] = False
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            leeway=timedelta(seconds=settings.clock_skew_seconds),
            options=options,
            **kwargs,
        )
    except jwt.InvalidTokenError as e:
        logger.warning("auth.session_token_invalid", reason=type(e).__name__)
        return None


def issue_refresh_token() -> str:
    """64 bytes of secure randomness, base64-encoded."""
    return base64.b64encode(secrets.token_bytes(64)).decode("ascii")


def refresh_token_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(
        days=settings.refresh_token_expire_days
    )


def issue_api_token(user) -> str:
    """User id plus fresh randomness. Callers assign it only when absent."""
    return f"{user.id.hex}-{uuid.uuid4().hex}"


def issue_cli_token() -> str:
    suffix = "".join(secrets.choice(_CLI_ALPHABET) for _ in range(CLI_TOKEN_LENGTH))
    return CLI_TOKEN_PREFIX + suffix
