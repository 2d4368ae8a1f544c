"""MCP config routes: /api/mcp-configs."""

from configplaza.api.resources import build_resource_router
from configplaza.db.models import ResourceKind
from configplaza.schemas.resources import McpConfigCreate, McpConfigRead, McpConfigUpdate

router = build_resource_router(
    ResourceKind.MCP_CONFIG,
    prefix="/mcp-configs",
    create_schema=McpConfigCreate,
    update_schema=McpConfigUpdate,
    read_schema=McpConfigRead,
)
