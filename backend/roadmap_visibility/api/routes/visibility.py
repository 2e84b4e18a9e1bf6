"""Admin visibility routes."""

from fastapi import APIRouter, HTTPException, Query, status

from roadmap_visibility.api.deps import CurrentAdmin, DBDep, ResolverDep
from roadmap_visibility.core.config import get_settings
from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.visibility import VisibilitySetting
from roadmap_visibility.schemas.visibility import (
    AuditLogEntryResponse,
    EntityType,
    RoadmapVisibilityDetails,
    VisibilityBatchUpdate,
    VisibilityOverview,
    VisibilitySettingResponse,
    VisibilityUpdate,
)
from roadmap_visibility.services import audit_log, visibility_overview_service, visibility_service
from roadmap_visibility.services.visibility_service import VisibilityError, VisibilityErrorCode

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/visibility", tags=["admin"])

_STATUS_BY_CODE = {
    VisibilityErrorCode.PARENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    VisibilityErrorCode.INVALID_ENTITY_TYPE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    VisibilityErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _http_error(exc: VisibilityError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={
            "code": exc.code.value,
            "message": exc.message,
            "entity_type": exc.entity_type.value if exc.entity_type else None,
            "entity_id": exc.entity_id,
        },
    )


def _setting_response(setting: VisibilitySetting) -> dict:
    return VisibilitySettingResponse.model_validate(setting).model_dump(mode="json")


# Fixed paths must come BEFORE parameterized paths


@router.get("/overview", response_model=VisibilityOverview)
async def get_overview(db: DBDep) -> VisibilityOverview:
    """Raw visibility flags and counts across all active roadmaps."""
    return await visibility_overview_service.get_visibility_overview(db)


@router.get("/audit", response_model=list[AuditLogEntryResponse])
async def list_audit_entries(
    db: DBDep,
    entity_type: EntityType | None = None,
    entity_id: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
) -> list[dict]:
    """Recent visibility changes, newest first."""
    entries = await audit_log.list_entries(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        limit=limit or get_settings().AUDIT_LOG_PAGE_SIZE,
    )
    return [AuditLogEntryResponse.model_validate(e).model_dump(mode="json") for e in entries]


@router.get("/roadmaps/{slug}", response_model=RoadmapVisibilityDetails)
async def get_roadmap_details(
    slug: str, db: DBDep, resolver: ResolverDep
) -> RoadmapVisibilityDetails:
    """Raw and effective visibility for every node of a roadmap."""
    details = await visibility_overview_service.get_roadmap_visibility_details(
        db, slug, resolver
    )
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return details


@router.put("", response_model=VisibilitySettingResponse)
async def update_visibility(data: VisibilityUpdate, db: DBDep, admin_id: CurrentAdmin) -> dict:
    """Set the own visibility flag of one entity."""
    try:
        setting = await visibility_service.update_visibility(
            db,
            admin_id,
            data.entity_type,
            data.entity_id,
            data.is_public,
            data.parent_roadmap_slug,
            data.parent_milestone_id,
        )
    except VisibilityError as exc:
        raise _http_error(exc) from exc
    return _setting_response(setting)


@router.put("/batch", response_model=list[VisibilitySettingResponse])
async def update_visibility_batch(
    data: VisibilityBatchUpdate, db: DBDep, admin_id: CurrentAdmin
) -> list[dict]:
    """Apply several visibility updates; one invalid update rejects all."""
    try:
        settings = await visibility_service.update_visibility_batch(db, admin_id, data.updates)
    except VisibilityError as exc:
        raise _http_error(exc) from exc
    return [_setting_response(s) for s in settings]


@router.delete("/{entity_type}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_visibility(
    entity_type: EntityType, entity_id: str, db: DBDep, admin_id: CurrentAdmin
) -> None:
    """Remove a setting so the entity falls back to private."""
    try:
        cleared = await visibility_service.clear_visibility(db, admin_id, entity_type, entity_id)
    except VisibilityError as exc:
        raise _http_error(exc) from exc
    if not cleared:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Visibility setting not found",
        )
