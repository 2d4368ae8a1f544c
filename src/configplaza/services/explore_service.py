"""Anonymous catalog browsing: search and sort over public resources."""

import enum
import uuid
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.db.models import ResourceKind
from configplaza.services.resource_service import ResourceService, service_for


class SortBy(str, enum.Enum):
    LIKES = "likes"
    DOWNLOADS = "downloads"
    CREATED_AT = "createdAt"


def _order_by(model, sort_by: SortBy) -> tuple:
    """Primary sort column, then newest first as the tie-breaker."""
    if sort_by is SortBy.DOWNLOADS:
        return (model.downloads.desc(), model.created_at.desc(), model.id)
    if sort_by is SortBy.CREATED_AT:
        return (model.created_at.desc(), model.id)
    return (model.likes.desc(), model.created_at.desc(), model.id)


def _search_filter(model, search: str):
    text_column = model.skill_markdown if model.kind is ResourceKind.SKILL else model.description
    return or_(
        model.name.icontains(search, autoescape=True),
        text_column.icontains(search, autoescape=True),
    )


class ExploreService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        kind: ResourceKind,
        page: int,
        limit: int,
        search: Optional[str] = None,
        sort_by: SortBy = SortBy.LIKES,
    ) -> tuple[ResourceService, list, int]:
        svc = service_for(kind, self.db)
        model = svc.model
        where = model.is_public.is_(True)
        if search and search.strip():
            where = where & _search_filter(model, search.strip())
        items, total = await svc.paginate(where, page, limit, order_by=_order_by(model, sort_by))
        return svc, items, total

    async def overview(self, viewer_id: Optional[uuid.UUID], limit: int) -> dict:
        """Top public items of every kind, by likes."""
        sections = {}
        for kind in ResourceKind:
            svc, items, _ = await self.list(kind, 1, limit)
            sections[kind] = await svc.to_read(items, viewer_id)
        return sections
