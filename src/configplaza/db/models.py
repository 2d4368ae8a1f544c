"""SQLAlchemy ORM models, the single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic migrations mirror these models.

Key concepts:
- UUID primary keys generated in Python (default=new_uuid)
- Portable types (Uuid, JSON) so the same models run on Postgres and SQLite
- Python-side timestamp defaults, so new rows are readable right after flush
- One shared user_likes table, discriminated by ResourceKind
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    declared_attr,
    mapped_column,
    relationship,
)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Enums
# ══════════════════════════════════════════════════════════════


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class ConfigFormat(str, enum.Enum):
    MARKDOWN = "markdown"
    YAML = "yaml"
    JSON = "json"


class AiTool(str, enum.Enum):
    CLAUDE_CODE = "claude_code"
    COPILOT = "copilot"
    CODEX = "codex"
    CURSOR = "cursor"
    AIDER = "aider"
    CUSTOM = "custom"


class ResourceKind(str, enum.Enum):
    """Discriminant for the shared user_likes table.

    Learn: Five resource tables share one like table. The kind tag plus
    the resource id identifies the liked row, and the unique triple
    (user_id, resource_id, resource_type) allows one like per user.
    """

    MCP_CONFIG = "mcp_config"
    AGENT_CONFIG = "agent_config"
    CUSTOM_PROMPT = "custom_prompt"
    SKILL = "skill"
    SOLUTION = "solution"


# ══════════════════════════════════════════════════════════════
# Credential store: users and CLI tokens
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A GitHub-backed account.

    Learn: Created on first GitHub login and synced on every later one.
    github_id never changes; username/email/bio/avatar follow GitHub.
    Settings are an owned value object flattened into two columns.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    github_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    avatar_url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    bio: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=Role.USER.value)

    api_token: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True, nullable=True
    )
    refresh_token: Mapped[Optional[str]] = mapped_column(
        String(256), index=True, nullable=True
    )
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Settings (owned)
    theme: Mapped[str] = mapped_column(String(16), nullable=False, default=Theme.SYSTEM.value)
    notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class CliToken(Base):
    """Long-lived credential for the acp CLI, one per user.

    Learn: Sent as the X-CLI-TOKEN header. Looked up by exact match.
    last_used_at is stamped on every authenticated use.
    """

    __tablename__ = "cli_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship(lazy="joined", innerjoin=True)


class UserLike(Base):
    """One like by one user on one resource of any kind."""

    __tablename__ = "user_likes"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "resource_id", "resource_type", name="uq_user_likes_triple"
        ),
        Index("ix_user_likes_resource", "resource_type", "resource_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    resource_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ══════════════════════════════════════════════════════════════
# Likeable resources
# ══════════════════════════════════════════════════════════════


class LikeableMixin:
    """Columns shared by every likeable resource kind.

    Learn: Owner FK, visibility flag, counters and tags. Counters are a
    cached projection; user_likes rows are the source of truth for likes.
    """

    kind: ClassVar[ResourceKind]

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=lambda: [])
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating: Mapped[float] = mapped_column(
        Numeric(3, 2, asdecimal=False), nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    @declared_attr
    def user(cls) -> Mapped["User"]:
        return relationship("User", lazy="joined", innerjoin=True)


class McpConfig(LikeableMixin, Base):
    """An MCP server definition. config_json is the raw server entry."""

    __tablename__ = "mcp_configs"
    kind = ResourceKind.MCP_CONFIG

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    config_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")


class AgentConfig(LikeableMixin, Base):
    """An agent instruction file (AGENTS.md style)."""

    __tablename__ = "agent_configs"
    kind = ResourceKind.AGENT_CONFIG

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    format: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ConfigFormat.MARKDOWN.value
    )


class CustomPrompt(LikeableMixin, Base):
    """A reusable prompt / slash command."""

    __tablename__ = "custom_prompts"
    kind = ResourceKind.CUSTOM_PROMPT

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Skill(LikeableMixin, Base):
    """A skill bundle: SKILL.md plus supporting files."""

    __tablename__ = "skills"
    kind = ResourceKind.SKILL

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    skill_markdown: Mapped[str] = mapped_column(Text, nullable=False, default="")

    resources: Mapped[list["SkillResource"]] = relationship(
        back_populates="skill",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SkillResource.relative_path",
    )


class SkillResource(Base):
    """A file shipped with a skill, addressed by its relative path."""

    __tablename__ = "skill_resources"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    skill_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("skills.id", ondelete="CASCADE"), index=True, nullable=False
    )
    relative_path: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    file_name: Mapped[str] = mapped_column(String(256), nullable=False)
    file_content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    skill: Mapped["Skill"] = relationship(back_populates="resources")


# ══════════════════════════════════════════════════════════════
# Solutions: a bundle of one agent plus MCPs, prompts and skills
# ══════════════════════════════════════════════════════════════


solution_mcp_configs = Table(
    "solution_mcp_configs",
    Base.metadata,
    Column("solution_id", Uuid, ForeignKey("solutions.id", ondelete="CASCADE"), primary_key=True),
    Column("mcp_config_id", Uuid, ForeignKey("mcp_configs.id", ondelete="CASCADE"), primary_key=True),
)

solution_custom_prompts = Table(
    "solution_custom_prompts",
    Base.metadata,
    Column("solution_id", Uuid, ForeignKey("solutions.id", ondelete="CASCADE"), primary_key=True),
    Column("custom_prompt_id", Uuid, ForeignKey("custom_prompts.id", ondelete="CASCADE"), primary_key=True),
)

solution_skills = Table(
    "solution_skills",
    Base.metadata,
    Column("solution_id", Uuid, ForeignKey("solutions.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Uuid, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class Solution(LikeableMixin, Base):
    """A ready-to-apply setup for one AI tool.

    Learn: The agent config is required and protected (ondelete RESTRICT),
    the linked MCPs/prompts/skills are plain many-to-many links.
    compatibility is a free-form JSON object (tool versions, OS notes).
    """

    __tablename__ = "solutions"
    kind = ResourceKind.SOLUTION

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    ai_tool: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AiTool.CLAUDE_CODE.value
    )
    agent_config_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agent_configs.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    compatibility: Mapped[dict] = mapped_column(JSON, nullable=False, default=lambda: {})

    agent_config: Mapped["AgentConfig"] = relationship(lazy="joined", innerjoin=True)
    mcp_configs: Mapped[list["McpConfig"]] = relationship(
        secondary=solution_mcp_configs, lazy="selectin"
    )
    custom_prompts: Mapped[list["CustomPrompt"]] = relationship(
        secondary=solution_custom_prompts, lazy="selectin"
    )
    skills: Mapped[list["Skill"]] = relationship(
        secondary=solution_skills, lazy="selectin"
    )


RESOURCE_MODELS: dict[ResourceKind, type] = {
    ResourceKind.MCP_CONFIG: McpConfig,
    ResourceKind.AGENT_CONFIG: AgentConfig,
    ResourceKind.CUSTOM_PROMPT: CustomPrompt,
    ResourceKind.SKILL: Skill,
    ResourceKind.SOLUTION: Solution,
}
