"""Router factory shared by the five resource kinds.

Learn: Every kind exposes the same eight routes:
- GET  /mine        → owned + liked-public (auth required)
- GET  /public      → public, not owned, not liked
- GET  ''           → everything the viewer can see, with filters
- GET  /{id}        → detail (counts a download)
- POST ''           → create (201)
- PUT  /{id}        → partial update, owner only
- DELETE /{id}      → delete, owner only
- POST /{id}/like   → toggle like → {likes, isLiked}

The factory takes the kind's schemas and an optional filter dependency
(e.g. ?format= for agents, ?aiTool= for solutions) and returns an
APIRouter. Kind-specific extras are added to the returned router.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.api.deps import Page, page_params
from configplaza.auth.dependencies import get_current_user, get_current_user_optional
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.db.models import ResourceKind
from configplaza.schemas.common import ApiResponse, LikeResult, ok
from configplaza.services.resource_service import ResourceService, service_for


def no_filters() -> dict:
    return {}


def build_resource_router(
    kind: ResourceKind,
    *,
    prefix: str,
    create_schema,
    update_schema,
    read_schema,
    filters=no_filters,
) -> APIRouter:
    router = APIRouter(prefix=prefix)
    paged = page_params(default_limit=20, max_limit=100)

    def _svc(db: AsyncSession = Depends(get_db)) -> ResourceService:
        return service_for(kind, db)

    # ─── Listings ────────────────────────────────────────

    @router.get("/mine", response_model=ApiResponse[list[read_schema]])
    async def list_mine(
        page: Page = Depends(paged),
        user: CurrentUser = Depends(get_current_user),
        svc: ResourceService = Depends(_svc),
    ):
        items, total = await svc.list_mine(user.user_id, page.page, page.limit)
        return ok(await svc.to_read(items, user.user_id), page.meta(total))

    @router.get("/public", response_model=ApiResponse[list[read_schema]])
    async def list_public(
        page: Page = Depends(paged),
        user: CurrentUser = Depends(get_current_user_optional),
        svc: ResourceService = Depends(_svc),
    ):
        items, total = await svc.list_public(user.user_id, page.page, page.limit)
        return ok(await svc.to_read(items, user.user_id), page.meta(total))

    @router.get("", response_model=ApiResponse[list[read_schema]])
    async def list_resources(
        page: Page = Depends(paged),
        is_public: Optional[bool] = Query(None, alias="isPublic"),
        extra: dict = Depends(filters),
        user: CurrentUser = Depends(get_current_user_optional),
        svc: ResourceService = Depends(_svc),
    ):
        items, total = await svc.list_visible(
            user.user_id, page.page, page.limit, is_public=is_public, **extra
        )
        return ok(await svc.to_read(items, user.user_id), page.meta(total))

    # ─── Detail ──────────────────────────────────────────

    @router.get("/{resource_id}", response_model=ApiResponse[read_schema])
    async def get_resource(
        resource_id: uuid.UUID,
        user: CurrentUser = Depends(get_current_user_optional),
        svc: ResourceService = Depends(_svc),
    ):
        resource = await svc.get_for_viewer(user.user_id, resource_id)
        return ok(await svc.to_read_one(resource, user.user_id))

    # ─── Writes ──────────────────────────────────────────

    @router.post("", response_model=ApiResponse[read_schema], status_code=201)
    async def create_resource(
        body: create_schema,
        user: CurrentUser = Depends(get_current_user),
        svc: ResourceService = Depends(_svc),
    ):
        resource = await svc.create(user.user_id, body.model_dump())
        return ok(await svc.to_read_one(resource, user.user_id))

    @router.put("/{resource_id}", response_model=ApiResponse[read_schema])
    async def update_resource(
        resource_id: uuid.UUID,
        body: update_schema,
        user: CurrentUser = Depends(get_current_user),
        svc: ResourceService = Depends(_svc),
    ):
        resource = await svc.update(
            user.user_id, resource_id, body.model_dump(exclude_unset=True)
        )
        return ok(await svc.to_read_one(resource, user.user_id))

    @router.delete("/{resource_id}", response_model=ApiResponse[dict])
    async def delete_resource(
        resource_id: uuid.UUID,
        user: CurrentUser = Depends(get_current_user),
        svc: ResourceService = Depends(_svc),
    ):
        await svc.delete(user.user_id, resource_id)
        return ok({"deleted": True})

    @router.post("/{resource_id}/like", response_model=ApiResponse[LikeResult])
    async def like_resource(
        resource_id: uuid.UUID,
        user: CurrentUser = Depends(get_current_user),
        svc: ResourceService = Depends(_svc),
    ):
        likes, is_liked = await svc.toggle_like(user.user_id, resource_id)
        return ok(LikeResult(likes=likes, is_liked=is_liked))

    return router
