"""CLI API: what `acp` lists and pulls. /api/cli/*.

Learn: Mounted with the hard auth dependency; in practice the identity
comes from the X-CLI-TOKEN gate since the CLI has no session token.
- GET /cli/solutions[?aiTool=] | /cli/agents | /cli/prompts | /cli/mcps
- GET /cli/<kind>/{id} → full detail (solutions embed their bundle)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.auth.dependencies import get_current_user
from configplaza.auth.identity import CurrentUser
from configplaza.db.engine import get_db
from configplaza.db.models import AiTool, ResourceKind
from configplaza.schemas.cli import (
    CliAgentConfig,
    CliCustomPrompt,
    CliMcpConfig,
    CliSolution,
    CliSolutionDetail,
)
from configplaza.schemas.common import ApiResponse, ok
from configplaza.services.cli_service import CliService

router = APIRouter(prefix="/cli")


def _svc(db: AsyncSession = Depends(get_db)) -> CliService:
    return CliService(db)


# ─── Solutions ───────────────────────────────────────────


@router.get("/solutions", response_model=ApiResponse[list[CliSolution]])
async def list_solutions(
    ai_tool: Optional[AiTool] = Query(None, alias="aiTool"),
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.list(ResourceKind.SOLUTION, user.user_id, ai_tool=ai_tool))


@router.get("/solutions/{resource_id}", response_model=ApiResponse[CliSolutionDetail])
async def get_solution(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.detail(ResourceKind.SOLUTION, user.user_id, resource_id))


# ─── Agents ──────────────────────────────────────────────


@router.get("/agents", response_model=ApiResponse[list[CliAgentConfig]])
async def list_agents(
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.list(ResourceKind.AGENT_CONFIG, user.user_id))


@router.get("/agents/{resource_id}", response_model=ApiResponse[CliAgentConfig])
async def get_agent(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.detail(ResourceKind.AGENT_CONFIG, user.user_id, resource_id))


# ─── Prompts ─────────────────────────────────────────────


@router.get("/prompts", response_model=ApiResponse[list[CliCustomPrompt]])
async def list_prompts(
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.list(ResourceKind.CUSTOM_PROMPT, user.user_id))


@router.get("/prompts/{resource_id}", response_model=ApiResponse[CliCustomPrompt])
async def get_prompt(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.detail(ResourceKind.CUSTOM_PROMPT, user.user_id, resource_id))


# ─── MCP configs ─────────────────────────────────────────


@router.get("/mcps", response_model=ApiResponse[list[CliMcpConfig]])
async def list_mcps(
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.list(ResourceKind.MCP_CONFIG, user.user_id))


@router.get("/mcps/{resource_id}", response_model=ApiResponse[CliMcpConfig])
async def get_mcp(
    resource_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CliService = Depends(_svc),
):
    return ok(await svc.detail(ResourceKind.MCP_CONFIG, user.user_id, resource_id))
