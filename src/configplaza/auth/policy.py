"""Resource visibility and ownership policy.

Learn: Every likeable resource kind (McpConfig, AgentConfig, CustomPrompt,
Skill, Solution) follows the same rules, so the predicates take the
viewer's id and the resource, nothing else:

    can_view    = public OR owner
    can_mutate  = owner (Role.ADMIN grants nothing extra)

The list filters are the SQL form of the same rules:

    visible  = public OR owned
    mine     = owned OR (liked AND public)
    public   = public AND NOT owned AND NOT liked

"mine" and "public" are disjoint and together cover exactly "visible",
so the web app can merge the two listings without duplicates.
"""

import uuid
from typing import Optional

from sqlalchemy import and_, false, not_, or_, select

from configplaza.db.models import UserLike


def can_view(viewer_id: Optional[uuid.UUID], resource) -> bool:
    return bool(resource.is_public) or (
        viewer_id is not None and viewer_id == resource.user_id
    )


def can_mutate(viewer_id: Optional[uuid.UUID], resource) -> bool:
    return viewer_id is not None and viewer_id == resource.user_id


def can_fetch_via_cli(viewer_id: Optional[uuid.UUID], resource, liked: bool) -> bool:
    """CLI pulls are limited to the viewer's own items and liked public ones."""
    if viewer_id is None:
        return False
    return viewer_id == resource.user_id or (liked and bool(resource.is_public))


# ─── SQL filters ─────────────────────────────────────────


def liked_ids_subquery(model, viewer_id: uuid.UUID):
    return select(UserLike.resource_id).where(
        UserLike.user_id == viewer_id,
        UserLike.resource_type == model.kind.value,
    )


def visible_filter(model, viewer_id: Optional[uuid.UUID]):
    if viewer_id is None:
        return model.is_public.is_(True)
    return or_(model.is_public.is_(True), model.user_id == viewer_id)


def mine_filter(model, viewer_id: Optional[uuid.UUID]):
    if viewer_id is None:
        return false()
    return or_(
        model.user_id == viewer_id,
        and_(
            model.is_public.is_(True),
            model.id.in_(liked_ids_subquery(model, viewer_id)),
        ),
    )


def public_filter(model, viewer_id: Optional[uuid.UUID]):
    if viewer_id is None:
        return model.is_public.is_(True)
    return and_(
        model.is_public.is_(True),
        model.user_id != viewer_id,
        not_(model.id.in_(liked_ids_subquery(model, viewer_id))),
    )
