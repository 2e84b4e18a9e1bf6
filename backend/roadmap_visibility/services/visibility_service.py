"""Visibility service: hierarchical resolution and audited updates.

Visibility is hierarchical. An entity is effectively public only when its own
flag is set and every ancestor is effectively public:

- roadmap:   own flag
- milestone: own flag AND roadmap
- objective: own flag AND milestone (which requires the roadmap)

A missing setting counts as private.
"""

import re
from collections.abc import Iterable, Sequence
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.visibility import VisibilitySetting
from roadmap_visibility.schemas.visibility import EntityType, VisibilityUpdate
from roadmap_visibility.services import audit_log, roadmap_service, visibility_store
from roadmap_visibility.services.visibility_store import VisibilityWrite

logger = get_logger(__name__)

OBJECTIVE_ID_PATTERN = re.compile(r"^(?P<milestone>.+)-objective-(?P<index>\d+)$")


class VisibilityErrorCode(str, Enum):
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
    INVALID_ENTITY_TYPE = "INVALID_ENTITY_TYPE"
    DATABASE_ERROR = "DATABASE_ERROR"


class VisibilityError(Exception):
    """Raised when a visibility change is rejected."""

    def __init__(
        self,
        message: str,
        code: VisibilityErrorCode,
        entity_type: EntityType | None = None,
        entity_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.entity_type = entity_type
        self.entity_id = entity_id


def objective_entity_id(milestone_id: str, index: int) -> str:
    """Visibility id of the ``index``-th learning objective of a milestone.

    Objectives have no ids of their own, so they are addressed by position.
    """
    return f"{milestone_id}-objective-{index}"


def parse_objective_entity_id(entity_id: str) -> tuple[str, int] | None:
    """Split an objective id into (milestone id, index), or None if malformed."""
    match = OBJECTIVE_ID_PATTERN.match(entity_id)
    if not match:
        return None
    return match.group("milestone"), int(match.group("index"))


def coerce_entity_type(entity_type: EntityType | str) -> EntityType:
    try:
        return EntityType(entity_type)
    except ValueError:
        raise VisibilityError(
            f"Unknown entity type '{entity_type}'",
            VisibilityErrorCode.INVALID_ENTITY_TYPE,
        ) from None


# ============================================================================
# Resolution
# ============================================================================


class VisibilityResolver:
    """Request-scoped resolver with memoized reads.

    Create one per request; settings are assumed not to change while it is
    alive. Resolving a whole level at once costs one query per level of the
    hierarchy.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._settings: dict[tuple[EntityType, str], VisibilitySetting | None] = {}
        self._effective: dict[tuple[EntityType, str], bool] = {}

    async def get_setting(
        self, entity_type: EntityType | str, entity_id: str
    ) -> VisibilitySetting | None:
        kind = EntityType(entity_type)
        settings = await self._load(kind, [entity_id])
        return settings[entity_id]

    async def _load(
        self, kind: EntityType, entity_ids: Iterable[str]
    ) -> dict[str, VisibilitySetting | None]:
        ids = list(dict.fromkeys(entity_ids))
        missing = [i for i in ids if (kind, i) not in self._settings]
        if missing:
            found = await visibility_store.get_visibility_batch(self.db, kind, missing)
            for entity_id in missing:
                self._settings[(kind, entity_id)] = found.get(entity_id)
        return {i: self._settings[(kind, i)] for i in ids}

    async def is_publicly_visible(self, entity_type: EntityType | str, entity_id: str) -> bool:
        """Effective visibility of a single entity."""
        result = await self.resolve_many(entity_type, [entity_id])
        return result[entity_id]

    async def resolve_many(
        self, entity_type: EntityType | str, entity_ids: Iterable[str]
    ) -> dict[str, bool]:
        """Effective visibility of many entities of the same type."""
        kind = EntityType(entity_type)
        ids = list(dict.fromkeys(entity_ids))
        pending = [i for i in ids if (kind, i) not in self._effective]
        if pending:
            await self._resolve_pending(kind, pending)
        return {i: self._effective[(kind, i)] for i in ids}

    async def _resolve_pending(self, kind: EntityType, pending: list[str]) -> None:
        settings = await self._load(kind, pending)

        if kind is EntityType.ROADMAP:
            for entity_id, setting in settings.items():
                self._effective[(kind, entity_id)] = bool(setting and setting.is_public)
            return

        # Only settings that are own-public with complete parent refs need a parent lookup
        candidates: dict[str, VisibilitySetting] = {}
        for entity_id, setting in settings.items():
            if setting is not None and setting.is_public and _has_parent_refs(kind, setting):
                candidates[entity_id] = setting
            else:
                self._effective[(kind, entity_id)] = False

        if not candidates:
            return

        if kind is EntityType.MILESTONE:
            parents = await self.resolve_many(
                EntityType.ROADMAP, (s.parent_roadmap_slug for s in candidates.values())
            )
            for entity_id, setting in candidates.items():
                self._effective[(kind, entity_id)] = parents[setting.parent_roadmap_slug]
            return

        parents = await self.resolve_many(
            EntityType.MILESTONE, (s.parent_milestone_id for s in candidates.values())
        )
        for entity_id, setting in candidates.items():
            visible = parents[setting.parent_milestone_id]
            if visible:
                # Milestone ids are only unique within a roadmap
                milestone = self._settings[(EntityType.MILESTONE, setting.parent_milestone_id)]
                visible = milestone.parent_roadmap_slug == setting.parent_roadmap_slug
            self._effective[(kind, entity_id)] = visible


def _has_parent_refs(kind: EntityType, setting: VisibilitySetting) -> bool:
    if kind is EntityType.MILESTONE:
        return bool(setting.parent_roadmap_slug)
    if kind is EntityType.OBJECTIVE:
        return bool(setting.parent_roadmap_slug and setting.parent_milestone_id)
    return True


async def is_publicly_visible(
    db: AsyncSession,
    entity_type: EntityType | str,
    entity_id: str,
) -> bool:
    """Check if an entity is publicly visible, considering its ancestors."""
    return await VisibilityResolver(db).is_publicly_visible(entity_type, entity_id)


# ============================================================================
# Updates
# ============================================================================


async def validate_parent_exists(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: str,
    parent_roadmap_slug: str | None = None,
    parent_milestone_id: str | None = None,
) -> None:
    """Validate that the parents referenced by a write exist.

    Raises:
        VisibilityError: PARENT_NOT_FOUND for missing references or parents,
            INVALID_ENTITY_TYPE for an objective id that is not the
            canonical id of an existing objective of its milestone
    """
    if entity_type is EntityType.ROADMAP:
        return

    if entity_type is EntityType.MILESTONE and not parent_roadmap_slug:
        raise VisibilityError(
            "Milestone visibility requires a parent roadmap slug",
            VisibilityErrorCode.PARENT_NOT_FOUND,
            entity_type,
            entity_id,
        )

    if entity_type is EntityType.OBJECTIVE:
        if not parent_roadmap_slug or not parent_milestone_id:
            raise VisibilityError(
                "Objective visibility requires both parent roadmap slug and milestone ID",
                VisibilityErrorCode.PARENT_NOT_FOUND,
                entity_type,
                entity_id,
            )
        parsed = parse_objective_entity_id(entity_id)
        # Reads only ever address objectives by the canonical positional id
        if (
            parsed is None
            or parsed[0] != parent_milestone_id
            or objective_entity_id(*parsed) != entity_id
        ):
            raise VisibilityError(
                f"Objective id '{entity_id}' must have the form "
                f"'{parent_milestone_id}-objective-<index>'",
                VisibilityErrorCode.INVALID_ENTITY_TYPE,
                entity_type,
                entity_id,
            )

    roadmap = await roadmap_service.find_roadmap_by_slug(db, parent_roadmap_slug)
    if roadmap is None:
        raise VisibilityError(
            f"Parent roadmap '{parent_roadmap_slug}' not found",
            VisibilityErrorCode.PARENT_NOT_FOUND,
            entity_type,
            entity_id,
        )

    if entity_type is not EntityType.OBJECTIVE:
        return

    milestone = roadmap_service.find_node(roadmap, parent_milestone_id)
    if milestone is None:
        raise VisibilityError(
            f"Parent milestone '{parent_milestone_id}' not found in roadmap "
            f"'{parent_roadmap_slug}'",
            VisibilityErrorCode.PARENT_NOT_FOUND,
            entity_type,
            entity_id,
        )

    index = parsed[1]
    objective_count = len(milestone.get("learning_objectives") or [])
    if index >= objective_count:
        raise VisibilityError(
            f"Objective index {index} out of range for milestone '{parent_milestone_id}' "
            f"with {objective_count} objective(s)",
            VisibilityErrorCode.INVALID_ENTITY_TYPE,
            entity_type,
            entity_id,
        )


async def _validate_update(db: AsyncSession, update: VisibilityUpdate) -> None:
    try:
        await validate_parent_exists(
            db,
            update.entity_type,
            update.entity_id,
            update.parent_roadmap_slug,
            update.parent_milestone_id,
        )
    except VisibilityError as exc:
        logger.warning(
            "Visibility update rejected",
            code=exc.code.value,
            entity_type=update.entity_type.value,
            entity_id=update.entity_id,
            reason=exc.message,
        )
        raise


def _write_for(actor_id: str, update: VisibilityUpdate) -> VisibilityWrite:
    # Roadmaps never carry parent references
    is_roadmap = update.entity_type is EntityType.ROADMAP
    is_objective = update.entity_type is EntityType.OBJECTIVE
    return VisibilityWrite(
        entity_type=update.entity_type,
        entity_id=update.entity_id,
        is_public=update.is_public,
        updated_by=actor_id,
        parent_roadmap_slug=None if is_roadmap else update.parent_roadmap_slug,
        parent_milestone_id=update.parent_milestone_id if is_objective else None,
    )


def _database_error(
    message: str,
    exc: SQLAlchemyError,
    entity_type: EntityType | None = None,
    entity_id: str | None = None,
) -> VisibilityError:
    logger.error(
        message,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        error=str(exc),
    )
    return VisibilityError(message, VisibilityErrorCode.DATABASE_ERROR, entity_type, entity_id)


async def _record_batch(
    db: AsyncSession, actor_id: str, writes: Sequence[VisibilityWrite]
) -> None:
    # Old values as they will be when each write lands, in batch order
    previous: dict[tuple[EntityType, str], bool | None] = {}
    for write in writes:
        key = (write.entity_type, write.entity_id)
        if key not in previous:
            current = await visibility_store.get_visibility(db, write.entity_type, write.entity_id)
            previous[key] = current.is_public if current is not None else None
        await audit_log.record_visibility_change(
            db,
            actor_id,
            write.entity_type,
            write.entity_id,
            previous[key],
            write.is_public,
            write.parent_roadmap_slug,
            write.parent_milestone_id,
        )
        previous[key] = write.is_public


async def update_visibility(
    db: AsyncSession,
    actor_id: str,
    entity_type: EntityType | str,
    entity_id: str,
    is_public: bool,
    parent_roadmap_slug: str | None = None,
    parent_milestone_id: str | None = None,
) -> VisibilitySetting:
    """Update visibility for an entity with parent validation and audit logging.

    Order: validate parents, read the current flag, commit the audit entry,
    then upsert and commit the setting. A rejected update writes nothing. If
    the audit write fails the setting is never touched.

    Returns:
        The stored setting

    Raises:
        VisibilityError: If the entity type is unknown, a parent is missing,
            or the database write fails (DATABASE_ERROR)

    Note: This function commits the transaction (twice).
    """
    update = VisibilityUpdate(
        entity_type=coerce_entity_type(entity_type),
        entity_id=entity_id,
        is_public=is_public,
        parent_roadmap_slug=parent_roadmap_slug,
        parent_milestone_id=parent_milestone_id,
    )
    settings = await update_visibility_batch(db, actor_id, [update])
    return settings[0]


async def update_visibility_batch(
    db: AsyncSession,
    actor_id: str,
    updates: Sequence[VisibilityUpdate],
) -> list[VisibilitySetting]:
    """Apply several updates: validate all, audit all, then write all.

    One invalid update rejects the whole batch before anything is written.

    Note: This function commits the transaction (twice).
    """
    if not updates:
        return []

    for update in updates:
        await _validate_update(db, update)

    writes = [_write_for(actor_id, u) for u in updates]

    try:
        await _record_batch(db, actor_id, writes)
        await db.commit()
    except SQLAlchemyError as exc:
        raise _database_error("Failed to record visibility audit entries", exc) from exc

    try:
        settings = await visibility_store.set_visibility_batch(db, writes)
        await db.commit()
    except SQLAlchemyError as exc:
        raise _database_error("Failed to store visibility settings", exc) from exc

    for setting in settings:
        logger.info(
            "Visibility updated",
            entity_type=setting.entity_type,
            entity_id=setting.entity_id,
            is_public=setting.is_public,
            updated_by=actor_id,
        )
    return settings


async def clear_visibility(
    db: AsyncSession,
    actor_id: str,
    entity_type: EntityType | str,
    entity_id: str,
) -> bool:
    """Remove an entity's setting so it falls back to the private default.

    Unlike setting ``is_public=False`` this leaves no row behind. The removal
    is audited with action "clear" and a null new value.

    Returns:
        True if a setting existed and was removed

    Note: This function commits the transaction.
    """
    kind = coerce_entity_type(entity_type)
    current = await visibility_store.get_visibility(db, kind, entity_id)
    if current is None:
        return False

    try:
        await audit_log.record_visibility_change(
            db,
            actor_id,
            kind,
            entity_id,
            current.is_public,
            None,
            current.parent_roadmap_slug,
            current.parent_milestone_id,
            action=audit_log.ACTION_CLEAR,
        )
        await db.commit()
    except SQLAlchemyError as exc:
        raise _database_error(
            "Failed to record visibility audit entry", exc, kind, entity_id
        ) from exc

    try:
        await visibility_store.delete_visibility(db, kind, entity_id)
        await db.commit()
    except SQLAlchemyError as exc:
        raise _database_error("Failed to clear visibility setting", exc, kind, entity_id) from exc

    logger.info("Visibility cleared", entity_type=kind.value, entity_id=entity_id)
    return True
