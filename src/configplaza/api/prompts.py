"""Custom prompt routes: /api/prompts."""

from configplaza.api.resources import build_resource_router
from configplaza.db.models import ResourceKind
from configplaza.schemas.resources import (
    CustomPromptCreate,
    CustomPromptRead,
    CustomPromptUpdate,
)

router = build_resource_router(
    ResourceKind.CUSTOM_PROMPT,
    prefix="/prompts",
    create_schema=CustomPromptCreate,
    update_schema=CustomPromptUpdate,
    read_schema=CustomPromptRead,
)
