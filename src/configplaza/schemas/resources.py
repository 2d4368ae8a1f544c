"""Request/response schemas for the five resource kinds.

Learn: XCreate for POST bodies, XUpdate for PUT (every field optional,
only the fields the client sent are applied: model_dump(exclude_unset=True)),
XRead for responses. All camelCase on the wire via CamelModel.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from configplaza.db.models import AiTool, ConfigFormat
from configplaza.schemas.common import AuthorSummary, CamelModel


# ─── Shared ──────────────────────────────────────────────


class LikeableRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    tags: list[str] = []
    is_public: bool
    downloads: int
    likes: int
    rating: float = 0
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None
    is_liked_by_current_user: bool = False


class _LikeableCreate(CamelModel):
    tags: list[str] = Field(default_factory=list)
    is_public: bool = True


class _LikeableUpdate(CamelModel):
    tags: Optional[list[str]] = None
    is_public: Optional[bool] = None


# ─── MCP configs ─────────────────────────────────────────


class McpConfigCreate(_LikeableCreate):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field("", max_length=1024)
    config_json: str = "{}"


class McpConfigUpdate(_LikeableUpdate):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = Field(None, max_length=1024)
    config_json: Optional[str] = None


class McpConfigRead(LikeableRead):
    name: str
    description: str
    config_json: str


# ─── Agent configs ───────────────────────────────────────


class AgentConfigCreate(_LikeableCreate):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field("", max_length=1024)
    content: str = ""
    format: ConfigFormat = ConfigFormat.MARKDOWN


class AgentConfigUpdate(_LikeableUpdate):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = Field(None, max_length=1024)
    content: Optional[str] = None
    format: Optional[ConfigFormat] = None


class AgentConfigRead(LikeableRead):
    name: str
    description: str
    content: str
    format: ConfigFormat


# ─── Custom prompts ──────────────────────────────────────


class CustomPromptCreate(_LikeableCreate):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field("", max_length=1024)
    content: str = ""


class CustomPromptUpdate(_LikeableUpdate):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = Field(None, max_length=1024)
    content: Optional[str] = None


class CustomPromptRead(LikeableRead):
    name: str
    description: str
    content: str


# ─── Skills ──────────────────────────────────────────────


class SkillResourceIn(CamelModel):
    relative_path: str = Field("", max_length=512)
    file_name: str = Field(min_length=1, max_length=256)
    file_content: str = ""


class SkillResourceRead(SkillResourceIn):
    id: uuid.UUID


class SkillCreate(_LikeableCreate):
    name: str = Field(min_length=1, max_length=128)
    skill_markdown: str = ""
    resources: list[SkillResourceIn] = Field(default_factory=list)


class SkillUpdate(_LikeableUpdate):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    skill_markdown: Optional[str] = None
    resources: Optional[list[SkillResourceIn]] = None


class SkillRead(LikeableRead):
    name: str
    skill_markdown: str
    resources: list[SkillResourceRead] = []


# ─── Solutions ───────────────────────────────────────────


class SolutionCreate(_LikeableCreate):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field("", max_length=1024)
    ai_tool: AiTool = AiTool.CLAUDE_CODE
    agent_config_id: uuid.UUID
    compatibility: dict = Field(default_factory=dict)
    mcp_config_ids: list[uuid.UUID] = Field(default_factory=list)
    custom_prompt_ids: list[uuid.UUID] = Field(default_factory=list)
    skill_ids: list[uuid.UUID] = Field(default_factory=list)


class SolutionUpdate(_LikeableUpdate):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = Field(None, max_length=1024)
    ai_tool: Optional[AiTool] = None
    agent_config_id: Optional[uuid.UUID] = None
    compatibility: Optional[dict] = None
    mcp_config_ids: Optional[list[uuid.UUID]] = None
    custom_prompt_ids: Optional[list[uuid.UUID]] = None
    skill_ids: Optional[list[uuid.UUID]] = None


class LinkedResource(CamelModel):
    id: uuid.UUID
    name: str


class SolutionRead(LikeableRead):
    name: str
    description: str
    ai_tool: AiTool
    agent_config_id: uuid.UUID
    compatibility: dict = {}
    agent_config: Optional[LinkedResource] = None
    mcp_configs: list[LinkedResource] = []
    custom_prompts: list[LinkedResource] = []
    skills: list[LinkedResource] = []


class SolutionApplied(CamelModel):
    applied: uuid.UUID
