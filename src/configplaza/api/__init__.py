"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. Catalog routers get the *soft* dependency so the
authenticator chain (session JWT, then X-CLI-TOKEN) runs on every request
even when the route allows anonymous access; account and CLI routers get
the hard one. FastAPI caches the dependency, so handlers that also ask for
the current user don't re-run the chain.
"""

from fastapi import APIRouter, Depends

from configplaza.api.agent_configs import router as agent_configs_router
from configplaza.api.auth import router as auth_router
from configplaza.api.cli import router as cli_router
from configplaza.api.cli_tokens import router as cli_tokens_router
from configplaza.api.explore import router as explore_router
from configplaza.api.health import router as health_router
from configplaza.api.mcp_configs import router as mcp_configs_router
from configplaza.api.prompts import router as prompts_router
from configplaza.api.skills import router as skills_router
from configplaza.api.solutions import router as solutions_router
from configplaza.api.users import router as users_router
from configplaza.auth.dependencies import get_current_user, get_current_user_optional

_identity = [Depends(get_current_user_optional)]
_auth = [Depends(get_current_user)]

api_router = APIRouter()

# Session lifecycle lives at /auth (OAuth redirect target)
api_router.include_router(auth_router, tags=["auth"])

api = APIRouter(prefix="/api")

# Open routes
api.include_router(health_router, tags=["health"])
api.include_router(explore_router, tags=["explore"], dependencies=_identity)

# Catalog: anonymous reads allowed, writes check auth per route
api.include_router(mcp_configs_router, tags=["mcp-configs"], dependencies=_identity)
api.include_router(agent_configs_router, tags=["agent-configs"], dependencies=_identity)
api.include_router(prompts_router, tags=["prompts"], dependencies=_identity)
api.include_router(skills_router, tags=["skills"], dependencies=_identity)
api.include_router(solutions_router, tags=["solutions"], dependencies=_identity)

# Protected routes
api.include_router(cli_tokens_router, tags=["cli-token"], dependencies=_auth)
api.include_router(users_router, tags=["users"], dependencies=_auth)
api.include_router(cli_router, tags=["cli"], dependencies=_auth)

api_router.include_router(api)
