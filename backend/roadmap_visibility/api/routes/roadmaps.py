"""Admin roadmap API routes (roadmap data layer)."""

from fastapi import APIRouter, HTTPException, status

from roadmap_visibility.api.deps import DBDep
from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.schemas.roadmap import RoadmapCreate, RoadmapResponse, RoadmapUpdate
from roadmap_visibility.services import roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/roadmaps", tags=["admin"])


@router.post("", response_model=RoadmapResponse, status_code=status.HTTP_201_CREATED)
async def create_roadmap(data: RoadmapCreate, db: DBDep) -> dict:
    """Create a new roadmap."""
    try:
        roadmap = await roadmap_service.create_roadmap(db, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")


@router.get("", response_model=list[RoadmapResponse])
async def list_roadmaps(db: DBDep) -> list[dict]:
    """List active roadmaps."""
    roadmaps = await roadmap_service.list_active_roadmaps(db)
    return [RoadmapResponse.model_validate(r).model_dump(mode="json") for r in roadmaps]


@router.get("/{slug}", response_model=RoadmapResponse)
async def get_roadmap(slug: str, db: DBDep) -> dict:
    """Get a roadmap by slug, active or not."""
    roadmap = await roadmap_service.find_roadmap_by_slug(db, slug)
    if not roadmap:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")


@router.patch("/{slug}", response_model=RoadmapResponse)
async def update_roadmap(slug: str, data: RoadmapUpdate, db: DBDep) -> dict:
    """Update a roadmap (admin edits)."""
    roadmap = await roadmap_service.update_roadmap(db, slug, data)
    if not roadmap:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")
