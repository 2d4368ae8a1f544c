"""Resource service: CRUD, listings, likes and downloads for every kind.

Learn: The five resource kinds share one shape (owner, visibility,
counters, tags), so one service class carries the shared behavior and a
small subclass per kind adds its own fields:
- SkillService replaces a skill's files when `resources` is sent
- SolutionService resolves agent/MCP/prompt/skill references
- AgentConfigService refuses to delete an agent a solution still uses

Authorization goes through auth.policy with the viewer id passed in
explicitly. Services raise NotFoundError/ForbiddenError/...; the API
layer never inspects ownership itself.
"""

import enum
import uuid
from typing import Optional

import structlog
from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth import policy
from configplaza.db.models import (
    AgentConfig,
    CustomPrompt,
    McpConfig,
    ResourceKind,
    Skill,
    SkillResource,
    Solution,
    solution_custom_prompts,
    solution_mcp_configs,
    solution_skills,
)
from configplaza.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from configplaza.schemas.common import AuthorSummary
from configplaza.schemas.resources import (
    AgentConfigRead,
    CustomPromptRead,
    McpConfigRead,
    SkillRead,
    SolutionRead,
)
from configplaza.services import like_service

logger = structlog.get_logger()


class ResourceService:
    """Shared behavior for one likeable resource kind."""

    model = None
    read_schema = None
    label = "Resource"

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def kind(self) -> ResourceKind:
        return self.model.kind

    # ─── Reads ───────────────────────────────────────────

    async def get(self, resource_id: uuid.UUID):
        """Load by id (fresh from the DB) or raise NotFoundError."""
        q = (
            select(self.model)
            .where(self.model.id == resource_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(q)
        resource = result.scalars().first()
        if resource is None:
            raise NotFoundError(f"{self.label} not found")
        return resource

    async def paginate(self, where, page: int, limit: int, order_by=None) -> tuple[list, int]:
        count_q = select(func.count()).select_from(self.model).where(where)
        total = (await self.db.execute(count_q)).scalar_one()

        q = (
            select(self.model)
            .where(where)
            .order_by(*(order_by or (self.model.created_at.desc(), self.model.id)))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(q)
        return list(result.scalars().all()), total

    async def list_mine(self, viewer_id: uuid.UUID, page: int, limit: int):
        """Owned by the viewer, or liked by the viewer and public."""
        return await self.paginate(policy.mine_filter(self.model, viewer_id), page, limit)

    async def list_public(self, viewer_id: Optional[uuid.UUID], page: int, limit: int):
        """Public, neither owned nor liked by the viewer."""
        return await self.paginate(policy.public_filter(self.model, viewer_id), page, limit)

    async def list_visible(
        self,
        viewer_id: Optional[uuid.UUID],
        page: int,
        limit: int,
        is_public: Optional[bool] = None,
        **filters,
    ):
        where = [policy.visible_filter(self.model, viewer_id)]
        if is_public is not None:
            where.append(self.model.is_public.is_(is_public))
        for column, value in filters.items():
            if value is not None:
                where.append(getattr(self.model, column) == _plain(value))
        return await self.paginate(and_(*where), page, limit)

    async def get_for_viewer(self, viewer_id: Optional[uuid.UUID], resource_id: uuid.UUID):
        """Detail fetch: visibility check, then count a download."""
        resource = await self.get(resource_id)
        if not policy.can_view(viewer_id, resource):
            raise ForbiddenError(f"You do not have access to this {self.label.lower()}")
        await like_service.record_download(self.db, self.model, [resource.id])
        await self.db.refresh(resource, attribute_names=["downloads"])
        return resource

    # ─── Writes ──────────────────────────────────────────

    async def create(self, owner_id: uuid.UUID, data: dict):
        resource = self.model(user_id=owner_id)
        await self._apply(resource, data, owner_id)
        self.db.add(resource)
        await self.db.commit()
        logger.info("resource.created", kind=self.kind.value, resource_id=str(resource.id))
        return await self.get(resource.id)

    async def update(self, viewer_id: uuid.UUID, resource_id: uuid.UUID, data: dict):
        resource = await self._get_owned(viewer_id, resource_id)
        await self._apply(resource, data, viewer_id)
        await self.db.commit()
        return await self.get(resource.id)

    async def delete(self, viewer_id: uuid.UUID, resource_id: uuid.UUID) -> None:
        resource = await self._get_owned(viewer_id, resource_id)
        await self._before_delete(resource)
        await like_service.delete_likes_for(self.db, resource)
        await self.db.delete(resource)
        await self.db.commit()
        logger.info("resource.deleted", kind=self.kind.value, resource_id=str(resource_id))

    async def toggle_like(self, viewer_id: uuid.UUID, resource_id: uuid.UUID) -> tuple[int, bool]:
        resource = await self.get(resource_id)
        if not policy.can_view(viewer_id, resource):
            raise ForbiddenError(f"You do not have access to this {self.label.lower()}")
        return await like_service.toggle_like(self.db, viewer_id, resource)

    async def _get_owned(self, viewer_id: uuid.UUID, resource_id: uuid.UUID):
        resource = await self.get(resource_id)
        if not policy.can_mutate(viewer_id, resource):
            raise ForbiddenError(f"You do not own this {self.label.lower()}")
        return resource

    async def _apply(self, resource, data: dict, viewer_id: uuid.UUID) -> None:
        for field, value in data.items():
            if value is not None:
                setattr(resource, field, _plain(value))

    async def _before_delete(self, resource) -> None:
        pass

    # ─── DTOs ────────────────────────────────────────────

    async def to_read(self, resources: list, viewer_id: Optional[uuid.UUID]) -> list:
        liked = await like_service.liked_ids(
            self.db, viewer_id, self.kind, (r.id for r in resources)
        )
        return [self.dto(r, r.id in liked) for r in resources]

    async def to_read_one(self, resource, viewer_id: Optional[uuid.UUID]):
        return self.dto(resource, await like_service.has_liked(self.db, viewer_id, resource))

    def dto(self, resource, liked: bool):
        read = self.read_schema.model_validate(resource)
        read.author = AuthorSummary.model_validate(resource.user)
        read.is_liked_by_current_user = liked
        return read


# ══════════════════════════════════════════════════════════════
# Per-kind services
# ══════════════════════════════════════════════════════════════


class McpConfigService(ResourceService):
    model = McpConfig
    read_schema = McpConfigRead
    label = "MCP config"

    async def _before_delete(self, resource) -> None:
        await self.db.execute(
            delete(solution_mcp_configs).where(
                solution_mcp_configs.c.mcp_config_id == resource.id
            )
        )


class AgentConfigService(ResourceService):
    model = AgentConfig
    read_schema = AgentConfigRead
    label = "Agent config"

    async def _before_delete(self, resource) -> None:
        q = select(func.count()).select_from(Solution).where(
            Solution.agent_config_id == resource.id
        )
        if (await self.db.execute(q)).scalar_one():
            raise ConflictError("Agent config is used by a solution and cannot be deleted")


class CustomPromptService(ResourceService):
    model = CustomPrompt
    read_schema = CustomPromptRead
    label = "Prompt"

    async def _before_delete(self, resource) -> None:
        await self.db.execute(
            delete(solution_custom_prompts).where(
                solution_custom_prompts.c.custom_prompt_id == resource.id
            )
        )


class SkillService(ResourceService):
    model = Skill
    read_schema = SkillRead
    label = "Skill"

    async def _apply(self, resource, data: dict, viewer_id: uuid.UUID) -> None:
        data = dict(data)
        files = data.pop("resources", None)
        await super()._apply(resource, data, viewer_id)
        if files is not None:
            # Sending `resources` replaces the whole file list.
            resource.resources = [SkillResource(**f) for f in files]

    async def _before_delete(self, resource) -> None:
        await self.db.execute(
            delete(solution_skills).where(solution_skills.c.skill_id == resource.id)
        )


class SolutionService(ResourceService):
    model = Solution
    read_schema = SolutionRead
    label = "Solution"

    _links = (
        ("mcp_config_ids", "mcp_configs", McpConfig),
        ("custom_prompt_ids", "custom_prompts", CustomPrompt),
        ("skill_ids", "skills", Skill),
    )

    async def _apply(self, resource, data: dict, viewer_id: uuid.UUID) -> None:
        data = dict(data)
        agent_config_id = data.pop("agent_config_id", None)
        links = {key: data.pop(key, None) for key, _, _ in self._links}
        await super()._apply(resource, data, viewer_id)

        if agent_config_id is not None:
            (agent,) = await self._resolve(AgentConfig, [agent_config_id], viewer_id)
            resource.agent_config = agent
        for key, attr, model in self._links:
            if links[key] is not None:
                setattr(resource, attr, await self._resolve(model, links[key], viewer_id))

    async def _resolve(self, model, ids: list, viewer_id: uuid.UUID) -> list:
        """Load referenced resources the author is allowed to bundle."""
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        q = select(model).where(model.id.in_(wanted), policy.visible_filter(model, viewer_id))
        found = {r.id: r for r in (await self.db.execute(q)).scalars().all()}
        missing = [str(i) for i in wanted if i not in found]
        if missing:
            raise InvalidRequestError(
                f"Unknown or inaccessible {model.kind.value} id(s): {', '.join(missing)}",
                code="INVALID_REFERENCE",
            )
        return [found[i] for i in wanted]


SERVICES: dict[ResourceKind, type[ResourceService]] = {
    ResourceKind.MCP_CONFIG: McpConfigService,
    ResourceKind.AGENT_CONFIG: AgentConfigService,
    ResourceKind.CUSTOM_PROMPT: CustomPromptService,
    ResourceKind.SKILL: SkillService,
    ResourceKind.SOLUTION: SolutionService,
}


def service_for(kind: ResourceKind, db: AsyncSession) -> ResourceService:
    return SERVICES[kind](db)


def _plain(value):
    return value.value if isinstance(value, enum.Enum) else value

