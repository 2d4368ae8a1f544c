"""Initial schema: users, CLI tokens, likes, resources, solution links

Learn: One revision creates every table. user_likes is shared by all
five resource kinds, discriminated by resource_type, with a unique
(user_id, resource_id, resource_type) triple. Owned rows cascade when
their user is deleted; a solution's agent config is RESTRICT.

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _likeable_columns() -> list:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # ─── Credential store ────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("github_id", sa.String(64), nullable=False, unique=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("avatar_url", sa.String(512), nullable=False),
        sa.Column("bio", sa.String(1024), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="user"),
        sa.Column("api_token", sa.String(128), nullable=True, unique=True),
        sa.Column("refresh_token", sa.String(256), nullable=True, index=True),
        sa.Column("refresh_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("theme", sa.String(16), nullable=False, server_default="system"),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "cli_tokens",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("token", sa.String(128), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "user_likes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("resource_id", sa.Uuid(), nullable=False),
        sa.Column("resource_type", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_id", "resource_id", "resource_type", name="uq_user_likes_triple"
        ),
    )
    op.create_index("ix_user_likes_resource", "user_likes", ["resource_type", "resource_id"])

    # ─── Resources ───────────────────────────────────────
    op.create_table(
        "mcp_configs",
        *_likeable_columns(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.String(1024), nullable=False),
        sa.Column("config_json", sa.Text(), nullable=False),
    )
    op.create_table(
        "agent_configs",
        *_likeable_columns(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.String(1024), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("format", sa.String(16), nullable=False, server_default="markdown"),
    )
    op.create_table(
        "custom_prompts",
        *_likeable_columns(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.String(1024), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    )
    op.create_table(
        "skills",
        *_likeable_columns(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("skill_markdown", sa.Text(), nullable=False),
    )
    op.create_table(
        "skill_resources",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "skill_id",
            sa.Uuid(),
            sa.ForeignKey("skills.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("relative_path", sa.String(512), nullable=False),
        sa.Column("file_name", sa.String(256), nullable=False),
        sa.Column("file_content", sa.Text(), nullable=False),
    )
    op.create_table(
        "solutions",
        *_likeable_columns(),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.String(1024), nullable=False),
        sa.Column("ai_tool", sa.String(16), nullable=False, server_default="claude_code"),
        sa.Column(
            "agent_config_id",
            sa.Uuid(),
            sa.ForeignKey("agent_configs.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        sa.Column("compatibility", sa.JSON(), nullable=False),
    )

    # ─── Solution links ──────────────────────────────────
    for table, column, target in (
        ("solution_mcp_configs", "mcp_config_id", "mcp_configs.id"),
        ("solution_custom_prompts", "custom_prompt_id", "custom_prompts.id"),
        ("solution_skills", "skill_id", "skills.id"),
    ):
        op.create_table(
            table,
            sa.Column(
                "solution_id",
                sa.Uuid(),
                sa.ForeignKey("solutions.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column(
                column,
                sa.Uuid(),
                sa.ForeignKey(target, ondelete="CASCADE"),
                primary_key=True,
            ),
        )


def downgrade() -> None:
    op.drop_table("solution_skills")
    op.drop_table("solution_custom_prompts")
    op.drop_table("solution_mcp_configs")
    op.drop_table("solutions")
    op.drop_table("skill_resources")
    op.drop_table("skills")
    op.drop_table("custom_prompts")
    op.drop_table("agent_configs")
    op.drop_table("mcp_configs")
    op.drop_index("ix_user_likes_resource", table_name="user_likes")
    op.drop_table("user_likes")
    op.drop_table("cli_tokens")
    op.drop_table("users")
