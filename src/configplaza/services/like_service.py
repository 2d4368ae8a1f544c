"""Likes and download counters.

Learn: user_likes rows are the source of truth; each resource's `likes`
column is a cached projection of the row count. Both change in the same
transaction, and the counter is always updated with a SQL expression
(likes = likes + 1) so two requests can't lose each other's update.
The unique (user_id, resource_id, resource_type) constraint is what stops
a concurrent double-like from creating two rows.
Counter writes pin `updated_at` to itself: it tracks content edits only.

reconcile_like_counts() rebuilds the projection from the rows, for the
day the two ever drift apart.
"""

import uuid
from typing import Iterable

import structlog
from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.db.models import RESOURCE_MODELS, ResourceKind, UserLike

logger = structlog.get_logger()


async def has_liked(db: AsyncSession, viewer_id, resource) -> bool:
    if viewer_id is None:
        return False
    q = select(UserLike.id).where(
        UserLike.user_id == viewer_id,
        UserLike.resource_id == resource.id,
        UserLike.resource_type == type(resource).kind.value,
    )
    result = await db.execute(q)
    return result.first() is not None


async def liked_ids(
    db: AsyncSession, viewer_id, kind: ResourceKind, resource_ids: Iterable[uuid.UUID]
) -> set[uuid.UUID]:
    """Which of these resources has the viewer liked (one query for a page)."""
    ids = list(resource_ids)
    if viewer_id is None or not ids:
        return set()
    q = select(UserLike.resource_id).where(
        UserLike.user_id == viewer_id,
        UserLike.resource_type == kind.value,
        UserLike.resource_id.in_(ids),
    )
    result = await db.execute(q)
    return set(result.scalars().all())


async def toggle_like(db: AsyncSession, viewer_id: uuid.UUID, resource) -> tuple[int, bool]:
    """Flip the viewer's like on a resource. Returns (likes, now_liked)."""
    model = type(resource)
    kind = model.kind.value

    try:
        removed = await db.execute(
            delete(UserLike).where(
                UserLike.user_id == viewer_id,
                UserLike.resource_id == resource.id,
                UserLike.resource_type == kind,
            )
        )
        if removed.rowcount:
            # Floor at zero in case the counter has drifted below the rows.
            new_likes = case((model.likes > 0, model.likes - 1), else_=0)
            now_liked = False
        else:
            db.add(UserLike(user_id=viewer_id, resource_id=resource.id, resource_type=kind))
            await db.flush()
            new_likes = model.likes + 1
            now_liked = True

        await db.execute(
            update(model)
            .where(model.id == resource.id)
            .values(likes=new_likes, updated_at=model.updated_at)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except IntegrityError:
        # A concurrent request inserted the same like first.
        await db.rollback()
        await db.refresh(resource)
        logger.info("likes.concurrent_like", kind=kind, resource_id=str(resource.id))
        return resource.likes, True

    await db.refresh(resource, attribute_names=["likes"])
    return resource.likes, now_liked


async def record_download(db: AsyncSession, model, resource_ids: Iterable[uuid.UUID]) -> None:
    """Increment downloads for the given rows. No dedup, every fetch counts."""
    ids = list(resource_ids)
    if not ids:
        return
    await db.execute(
        update(model)
        .where(model.id.in_(ids))
        .values(downloads=model.downloads + 1, updated_at=model.updated_at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def delete_likes_for(db: AsyncSession, resource) -> None:
    await db.execute(
        delete(UserLike).where(
            UserLike.resource_id == resource.id,
            UserLike.resource_type == type(resource).kind.value,
        )
    )


async def reconcile_like_counts(db: AsyncSession, kind: ResourceKind) -> int:
    """Overwrite cached like counters with the real row counts.

    Returns how many resources were corrected.
    """
    model = RESOURCE_MODELS[kind]

    counts_q = (
        select(UserLike.resource_id, func.count(UserLike.id))
        .where(UserLike.resource_type == kind.value)
        .group_by(UserLike.resource_id)
    )
    actual = {rid: n for rid, n in (await db.execute(counts_q)).all()}

    rows = (await db.execute(select(model.id, model.likes))).all()
    fixed = 0
    for resource_id, cached in rows:
        real = actual.get(resource_id, 0)
        if cached != real:
            await db.execute(
                update(model)
                .where(model.id == resource_id)
                .values(likes=real, updated_at=model.updated_at)
                .execution_options(synchronize_session=False)
            )
            fixed += 1

    await db.commit()
    logger.info("likes.reconciled", kind=kind.value, fixed=fixed)
    return fixed
