"""Append-only audit log of visibility changes."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.visibility import VisibilityAuditLog
from roadmap_visibility.schemas.visibility import EntityType

logger = get_logger(__name__)

ACTION_UPDATE = "update"
ACTION_CLEAR = "clear"


async def record_visibility_change(
    db: AsyncSession,
    actor_id: str,
    entity_type: EntityType | str,
    entity_id: str,
    old_value: bool | None,
    new_value: bool | None,
    parent_roadmap_slug: str | None = None,
    parent_milestone_id: str | None = None,
    action: str = ACTION_UPDATE,
) -> VisibilityAuditLog:
    """Append one audit entry.

    Args:
        db: Database session
        actor_id: Admin who made the change
        entity_type: Entity type
        entity_id: Entity id
        old_value: Own flag before the change, None if no setting existed
        new_value: Own flag after the change, None for a clear
        parent_roadmap_slug: Parent roadmap, if any
        parent_milestone_id: Parent milestone, if any
        action: "update" or "clear"

    Returns:
        The new entry

    Note: This function flushes but does NOT commit the transaction.
    """
    kind = EntityType(entity_type)
    entry = VisibilityAuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=kind.value,
        entity_id=entity_id,
        old_value=old_value,
        new_value=new_value,
        parent_roadmap_slug=parent_roadmap_slug,
        parent_milestone_id=parent_milestone_id,
    )
    db.add(entry)
    await db.flush()

    logger.info(
        "Visibility change audited",
        audit_id=entry.id,
        action=action,
        actor_id=actor_id,
        entity_type=kind.value,
        entity_id=entity_id,
        old_value=old_value,
        new_value=new_value,
    )
    return entry


async def list_entries(
    db: AsyncSession,
    *,
    entity_type: EntityType | str | None = None,
    entity_id: str | None = None,
    limit: int = 50,
) -> list[VisibilityAuditLog]:
    """List audit entries, newest first."""
    stmt = select(VisibilityAuditLog)
    if entity_type is not None:
        stmt = stmt.where(VisibilityAuditLog.entity_type == EntityType(entity_type).value)
    if entity_id is not None:
        stmt = stmt.where(VisibilityAuditLog.entity_id == entity_id)
    stmt = stmt.order_by(VisibilityAuditLog.id.desc()).limit(limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())
