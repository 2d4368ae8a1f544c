"""Skill routes: /api/skills.

Learn: A PUT that includes `resources` replaces the skill's whole file
list; leaving it out keeps the files untouched.
"""

from configplaza.api.resources import build_resource_router
from configplaza.db.models import ResourceKind
from configplaza.schemas.resources import SkillCreate, SkillRead, SkillUpdate

router = build_resource_router(
    ResourceKind.SKILL,
    prefix="/skills",
    create_schema=SkillCreate,
    update_schema=SkillUpdate,
    read_schema=SkillRead,
)
