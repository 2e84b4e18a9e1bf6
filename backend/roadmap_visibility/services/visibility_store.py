"""Visibility store: persistence of per-entity visibility settings.

Reads never raise for missing rows; absence is an empty result. Parent
validation is the caller's job (see ``visibility_service.update_visibility``).
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.visibility import VisibilitySetting
from roadmap_visibility.schemas.visibility import EntityType

logger = get_logger(__name__)


@dataclass(frozen=True)
class VisibilityWrite:
    """Full replacement value for one visibility setting."""

    entity_type: EntityType
    entity_id: str
    is_public: bool
    updated_by: str
    parent_roadmap_slug: str | None = None
    parent_milestone_id: str | None = None


def _type_value(entity_type: EntityType | str) -> str:
    return EntityType(entity_type).value


def _parent_column(entity_type: EntityType | str):
    """Column holding the parent key for a child entity type."""
    kind = EntityType(entity_type)
    if kind is EntityType.MILESTONE:
        return VisibilitySetting.parent_roadmap_slug
    if kind is EntityType.OBJECTIVE:
        return VisibilitySetting.parent_milestone_id
    return None


async def get_visibility(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_id: str,
) -> VisibilitySetting | None:
    """Get the setting for one entity, or None."""
    result = await db.execute(
        select(VisibilitySetting).where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            VisibilitySetting.entity_id == entity_id,
        )
    )
    return result.scalar_one_or_none()


async def get_visibility_batch(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_ids: Iterable[str],
) -> dict[str, VisibilitySetting]:
    """Get settings for many entities of one type.

    Returns:
        Mapping of entity id to setting; ids without a setting are absent
    """
    ids = list(dict.fromkeys(entity_ids))
    if not ids:
        return {}

    result = await db.execute(
        select(VisibilitySetting).where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            VisibilitySetting.entity_id.in_(ids),
        )
    )
    return {s.entity_id: s for s in result.scalars().all()}


async def get_visibility_by_parent(
    db: AsyncSession,
    entity_type: EntityType | str,
    parent_id: str,
) -> list[VisibilitySetting]:
    """Get settings whose parent reference matches ``parent_id``.

    Milestones match on ``parent_roadmap_slug``, objectives on
    ``parent_milestone_id``. Roadmaps have no parent.
    """
    return await get_visibility_by_parents(db, entity_type, [parent_id])


async def get_visibility_by_parents(
    db: AsyncSession,
    entity_type: EntityType | str,
    parent_ids: Iterable[str],
) -> list[VisibilitySetting]:
    """Batched ``get_visibility_by_parent`` over several parents in one query."""
    column = _parent_column(entity_type)
    ids = list(dict.fromkeys(parent_ids))
    if column is None or not ids:
        return []

    result = await db.execute(
        select(VisibilitySetting)
        .where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            column.in_(ids),
        )
        .order_by(VisibilitySetting.entity_id)
    )
    return list(result.scalars().all())


async def set_visibility(db: AsyncSession, write: VisibilityWrite) -> VisibilitySetting:
    """Insert or fully replace the setting for ``(entity_type, entity_id)``.

    Concurrent writers race; the last flush wins.

    Note: This function flushes but does NOT commit the transaction.
    """
    setting = await get_visibility(db, write.entity_type, write.entity_id)
    now = datetime.now(UTC)
    if setting is None:
        setting = VisibilitySetting(
            entity_type=_type_value(write.entity_type),
            entity_id=write.entity_id,
            created_at=now,
        )
        db.add(setting)

    setting.is_public = write.is_public
    setting.parent_roadmap_slug = write.parent_roadmap_slug
    setting.parent_milestone_id = write.parent_milestone_id
    setting.updated_by = write.updated_by
    setting.updated_at = now

    await db.flush()
    return setting


async def set_visibility_batch(
    db: AsyncSession,
    writes: Sequence[VisibilityWrite],
) -> list[VisibilitySetting]:
    """Upsert several settings, returned in input order.

    Note: This function flushes but does NOT commit the transaction.
    """
    return [await set_visibility(db, write) for write in writes]


async def find_public_entities(db: AsyncSession, entity_type: EntityType | str) -> list[str]:
    """Ids of entities whose own flag is public (no hierarchy applied)."""
    result = await db.execute(
        select(VisibilitySetting.entity_id)
        .where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            VisibilitySetting.is_public.is_(True),
        )
        .order_by(VisibilitySetting.entity_id)
    )
    return list(result.scalars().all())


async def has_visibility_setting(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_id: str,
) -> bool:
    """Check whether a setting row exists."""
    result = await db.execute(
        select(func.count())
        .select_from(VisibilitySetting)
        .where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            VisibilitySetting.entity_id == entity_id,
        )
    )
    return result.scalar_one() > 0


async def delete_visibility(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_id: str,
) -> bool:
    """Remove a setting row.

    Returns:
        True if a row was deleted

    Note: This function flushes but does NOT commit the transaction.
    """
    result = await db.execute(
        delete(VisibilitySetting).where(
            VisibilitySetting.entity_type == _type_value(entity_type),
            VisibilitySetting.entity_id == entity_id,
        )
    )
    await db.flush()
    deleted = (result.rowcount or 0) > 0
    if deleted:
        logger.debug("Visibility setting deleted", entity_type=_type_value(entity_type), entity_id=entity_id)
    return deleted
