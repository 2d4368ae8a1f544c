"""Agent config routes: /api/agent-configs, plus a raw download."""

import uuid
from typing import Optional

from fastapi import Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.api.resources import build_resource_router
from configplaza.auth.dependencies import get_current_user_optional
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.db.models import ConfigFormat, ResourceKind
from configplaza.schemas.resources import (
    AgentConfigCreate,
    AgentConfigRead,
    AgentConfigUpdate,
)
from configplaza.services.resource_service import service_for


def agent_filters(format: Optional[ConfigFormat] = Query(None)) -> dict:
    return {"format": format}


router = build_resource_router(
    ResourceKind.AGENT_CONFIG,
    prefix="/agent-configs",
    create_schema=AgentConfigCreate,
    update_schema=AgentConfigUpdate,
    read_schema=AgentConfigRead,
    filters=agent_filters,
)


@router.get("/{resource_id}/download", response_class=PlainTextResponse)
async def download_agent_config(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """Raw agent file as text/markdown (counts a download)."""
    agent = await service_for(ResourceKind.AGENT_CONFIG, db).get_for_viewer(
        user.user_id, resource_id
    )
    return PlainTextResponse(agent.content, media_type="text/markdown")
