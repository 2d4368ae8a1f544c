"""What the acp CLI may pull: the caller's own items plus liked public ones.

Learn: The CLI never browses the whole catalog. A user "collects" an
item on the website by liking it, then `acp apply` sees it. Lists are
unpaginated (a personal collection is small) and detail fetches count a
download, for a solution also on every bundled agent, MCP and prompt.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth import policy
from configplaza.db.models import (
    AgentConfig,
    AiTool,
    CustomPrompt,
    McpConfig,
    ResourceKind,
    Solution,
)
from configplaza.errors import ForbiddenError
from configplaza.schemas.cli import (
    CliAgentConfig,
    CliCustomPrompt,
    CliMcpConfig,
    CliSolution,
    CliSolutionDetail,
)
from configplaza.schemas.common import AuthorSummary
from configplaza.services import like_service
from configplaza.services.resource_service import service_for

LIST_SCHEMAS = {
    ResourceKind.SOLUTION: CliSolution,
    ResourceKind.AGENT_CONFIG: CliAgentConfig,
    ResourceKind.CUSTOM_PROMPT: CliCustomPrompt,
    ResourceKind.MCP_CONFIG: CliMcpConfig,
}

DETAIL_SCHEMAS = {**LIST_SCHEMAS, ResourceKind.SOLUTION: CliSolutionDetail}


class CliService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        kind: ResourceKind,
        viewer_id: uuid.UUID,
        ai_tool: Optional[AiTool] = None,
    ) -> list:
        model = service_for(kind, self.db).model
        q = select(model).where(policy.mine_filter(model, viewer_id))
        if ai_tool is not None and kind is ResourceKind.SOLUTION:
            q = q.where(Solution.ai_tool == ai_tool.value)
        q = q.order_by(model.created_at.desc(), model.id)
        resources = list((await self.db.execute(q)).scalars().all())

        liked = await like_service.liked_ids(self.db, viewer_id, kind, (r.id for r in resources))
        return [self._dto(LIST_SCHEMAS[kind], r, viewer_id, r.id in liked) for r in resources]

    async def detail(self, kind: ResourceKind, viewer_id: uuid.UUID, resource_id: uuid.UUID):
        svc = service_for(kind, self.db)
        resource = await svc.get(resource_id)
        liked = await like_service.has_liked(self.db, viewer_id, resource)
        if not policy.can_fetch_via_cli(viewer_id, resource, liked):
            raise ForbiddenError(
                f"{svc.label} is not yours and not in your liked public items"
            )

        await like_service.record_download(self.db, svc.model, [resource.id])
        if kind is ResourceKind.SOLUTION:
            await like_service.record_download(self.db, AgentConfig, [resource.agent_config_id])
            await like_service.record_download(
                self.db, McpConfig, [m.id for m in resource.mcp_configs]
            )
            await like_service.record_download(
                self.db, CustomPrompt, [p.id for p in resource.custom_prompts]
            )

        resource = await svc.get(resource_id)
        return self._dto(DETAIL_SCHEMAS[kind], resource, viewer_id, liked)

    def _dto(self, schema, resource, viewer_id: uuid.UUID, liked: bool):
        read = schema.model_validate(resource)
        read.author = AuthorSummary.model_validate(resource.user)
        read.is_liked_by_current_user = liked
        read.is_liked = liked
        read.is_owner = resource.user_id == viewer_id
        return read
