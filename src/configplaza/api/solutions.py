"""Solution routes: /api/solutions, plus apply."""

import uuid
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.api.resources import build_resource_router
from configplaza.auth.dependencies import get_current_user_optional
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.db.models import AiTool, ResourceKind
from configplaza.schemas.common import ApiResponse, ok
from configplaza.schemas.resources import (
    SolutionApplied,
    SolutionCreate,
    SolutionRead,
    SolutionUpdate,
)
from configplaza.services.resource_service import service_for


def solution_filters(ai_tool: Optional[AiTool] = Query(None, alias="aiTool")) -> dict:
    return {"ai_tool": ai_tool}


router = build_resource_router(
    ResourceKind.SOLUTION,
    prefix="/solutions",
    create_schema=SolutionCreate,
    update_schema=SolutionUpdate,
    read_schema=SolutionRead,
    filters=solution_filters,
)


@router.post("/{resource_id}/apply", response_model=ApiResponse[SolutionApplied])
async def apply_solution(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """Acknowledge an apply from the web app. Files are written by the CLI."""
    solution = await service_for(ResourceKind.SOLUTION, db).get_for_viewer(
        user.user_id, resource_id
    )
    return ok(SolutionApplied(applied=solution.id))
