"""Public roadmap routes.

No authentication: these serve anonymous visitors. Private and missing
roadmaps are indistinguishable (both 404) so existence is not revealed.
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from roadmap_visibility.api.deps import DBDep, ResolverDep
from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.schemas.visibility import PublicRoadmap
from roadmap_visibility.services import public_roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/public/roadmaps", tags=["public"])


@router.get("", response_model=list[PublicRoadmap])
async def list_public_roadmaps(db: DBDep) -> list[PublicRoadmap]:
    """List publicly visible roadmaps with filtered content."""
    try:
        return await public_roadmap_service.get_public_roadmaps(db)
    except SQLAlchemyError:
        # Do not expose internal errors to anonymous visitors
        logger.exception("Failed to list public roadmaps")
        return []


@router.get("/{slug}", response_model=PublicRoadmap)
async def get_public_roadmap(slug: str, db: DBDep, resolver: ResolverDep) -> PublicRoadmap:
    """Get one public roadmap with filtered content."""
    roadmap = await public_roadmap_service.get_public_roadmap_by_slug(db, slug, resolver)
    if roadmap is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return roadmap
