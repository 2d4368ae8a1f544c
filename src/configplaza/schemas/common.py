"""Shared schemas: camelCase base model, response envelope, author summary.

Learn: Every JSON response is wrapped as
    {success, data?, meta?: {page, limit, total}, error?: {code, message}}
The envelope is generic (ApiResponse[T]) so OpenAPI shows the real
payload type per route.
"""

import uuid
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for all DTOs: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int


class ApiError(CamelModel):
    code: str
    message: str


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    meta: Optional[PaginationMeta] = None
    error: Optional[ApiError] = None


def ok(data=None, meta: Optional[PaginationMeta] = None) -> ApiResponse:
    """Wrap a payload in a success envelope."""
    return ApiResponse(success=True, data=data, meta=meta)


def fail(code: str, message: str) -> dict:
    """Error envelope as a plain dict (used by exception handlers)."""
    return ApiResponse(success=False, error=ApiError(code=code, message=message)).model_dump(
        by_alias=True, exclude_none=True
    )


class AuthorSummary(CamelModel):
    id: uuid.UUID
    username: str
    avatar_url: str = ""


class LikeResult(CamelModel):
    likes: int
    is_liked: bool
