"""Explore API: anonymous browsing of the public catalog. /api/explore.

Learn: No login needed. If the request does carry an identity, it only
fills in isLikedByCurrentUser.
- GET /explore?limit=          → top items of every kind
- GET /explore/<kind>?page=&limit=&search=&sortBy=likes|downloads|createdAt
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.api.deps import Page, page_params
from configplaza.auth.dependencies import get_current_user_optional
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.db.models import ResourceKind
from configplaza.schemas.common import ApiResponse, CamelModel, ok
from configplaza.schemas.resources import (
    AgentConfigRead,
    CustomPromptRead,
    McpConfigRead,
    SkillRead,
    SolutionRead,
)
from configplaza.services.explore_service import ExploreService, SortBy

router = APIRouter(prefix="/explore")


class ExploreOverview(CamelModel):
    solutions: list[SolutionRead] = []
    agents: list[AgentConfigRead] = []
    prompts: list[CustomPromptRead] = []
    mcps: list[McpConfigRead] = []
    skills: list[SkillRead] = []


_SECTIONS = {
    "solutions": (ResourceKind.SOLUTION, SolutionRead),
    "agents": (ResourceKind.AGENT_CONFIG, AgentConfigRead),
    "prompts": (ResourceKind.CUSTOM_PROMPT, CustomPromptRead),
    "mcps": (ResourceKind.MCP_CONFIG, McpConfigRead),
    "skills": (ResourceKind.SKILL, SkillRead),
}


def _svc(db: AsyncSession = Depends(get_db)) -> ExploreService:
    return ExploreService(db)


@router.get("", response_model=ApiResponse[ExploreOverview])
async def explore_overview(
    limit: int = Query(10),
    user: CurrentUser = Depends(get_current_user_optional),
    svc: ExploreService = Depends(_svc),
):
    sections = await svc.overview(user.user_id, max(1, min(limit, 50)))
    return ok(
        ExploreOverview(**{name: sections[kind] for name, (kind, _) in _SECTIONS.items()})
    )


def _add_section_route(name: str, kind: ResourceKind, read_schema) -> None:
    paged = page_params(default_limit=20, max_limit=50)

    async def explore_section(
        page: Page = Depends(paged),
        search: Optional[str] = Query(None),
        sort_by: SortBy = Query(SortBy.LIKES, alias="sortBy"),
        user: CurrentUser = Depends(get_current_user_optional),
        svc: ExploreService = Depends(_svc),
    ):
        resource_svc, items, total = await svc.list(
            kind, page.page, page.limit, search=search, sort_by=sort_by
        )
        return ok(await resource_svc.to_read(items, user.user_id), page.meta(total))

    router.add_api_route(
        f"/{name}",
        explore_section,
        methods=["GET"],
        response_model=ApiResponse[list[read_schema]],
        name=f"explore_{name}",
    )


for _name, (_kind, _schema) in _SECTIONS.items():
    _add_section_route(_name, _kind, _schema)
