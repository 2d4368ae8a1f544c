"""Error taxonomy and the envelope exception handlers.

Learn: Services raise these domain exceptions; the handlers registered
in create_app() are the single place that maps them to HTTP status codes
and {success: false, error: {code, message}} bodies.

Authentication failures are NOT exceptions here: the token issuer and
the CLI gate return None, and endpoints turn "no identity" into 401.
Unhandled errors become a generic 500; details only go to the log so no
secret (signing key, client secret) can leak into a response.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from configplaza.schemas.common import fail

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for errors the API maps to a status code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ConfigurationError(AppError):
    """Missing or unsafe server configuration (weak key, no OAuth creds)."""

    status_code = 500
    code = "CONFIGURATION_ERROR"


class InvalidRequestError(AppError):
    status_code = 400
    code = "INVALID_REQUEST"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class UpstreamError(AppError):
    """An external provider call failed. Carries the provider's status/body.

    Learn: Reported as a 400-class error (the caller can retry the OAuth
    flow), distinct from persistence failures which end up as 500.
    """

    status_code = 400
    code = "UPSTREAM_FAILED"

    def __init__(
        self,
        message: str,
        provider_status: Optional[int] = None,
        provider_body: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code=code)
        self.provider_status = provider_status
        self.provider_body = provider_body


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on the app."""

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError):
        # The message may name config keys; never echo it to clients.
        logger.error("errors.configuration", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(exc.code, "Server is misconfigured"),
        )

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        headers = None
        if isinstance(exc, UnauthorizedError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(exc.code, exc.message),
            headers=headers,
        )

    @app.exception_handler(HTTPException)
    async def _http_exception(request: Request, exc: HTTPException):
        code = "UNAUTHORIZED" if exc.status_code == 401 else f"HTTP_{exc.status_code}"
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        message = f"{where}: {first.get('msg', 'invalid input')}" if where else "Invalid input"
        return JSONResponse(status_code=422, content=fail("VALIDATION_ERROR", message))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("errors.unhandled", path=request.url.path, error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content=fail("INTERNAL_ERROR", "An internal error occurred"),
        )
