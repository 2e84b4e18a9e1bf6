"""Roadmap data layer: CRUD over roadmap documents.

The visibility core only reads from here, to validate parents on writes and
to fetch documents for public filtering.
"""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.roadmap import Roadmap
from roadmap_visibility.schemas.roadmap import RoadmapCreate, RoadmapUpdate

logger = get_logger(__name__)


def find_node(roadmap: Roadmap, node_id: str) -> dict[str, Any] | None:
    """Return the raw node dict with the given id, if the roadmap has one."""
    for node in roadmap.nodes or []:
        if node.get("id") == node_id:
            return node
    return None


def has_node(roadmap: Roadmap, node_id: str) -> bool:
    """Check whether a node id belongs to the roadmap."""
    return find_node(roadmap, node_id) is not None


async def find_roadmap_by_slug(
    db: AsyncSession,
    slug: str,
    *,
    active_only: bool = False,
) -> Roadmap | None:
    """Get a roadmap by slug.

    Args:
        db: Database session
        slug: Roadmap slug
        active_only: Ignore deactivated roadmaps

    Returns:
        Roadmap or None
    """
    stmt = select(Roadmap).where(Roadmap.slug == slug)
    if active_only:
        stmt = stmt.where(Roadmap.is_active)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_active_roadmaps(
    db: AsyncSession,
    slugs: Iterable[str] | None = None,
) -> list[Roadmap]:
    """List active roadmaps, optionally restricted to the given slugs.

    Returns:
        Roadmaps ordered by slug
    """
    stmt = select(Roadmap).where(Roadmap.is_active)
    if slugs is not None:
        slug_list = list(slugs)
        if not slug_list:
            return []
        stmt = stmt.where(Roadmap.slug.in_(slug_list))
    result = await db.execute(stmt.order_by(Roadmap.slug))
    return list(result.scalars().all())


async def create_roadmap(
    db: AsyncSession,
    roadmap_data: RoadmapCreate,
) -> Roadmap:
    """Create a new roadmap.

    Raises:
        ValueError: If the slug is already taken

    Note: This function commits the transaction.
    """
    if await find_roadmap_by_slug(db, roadmap_data.slug):
        raise ValueError(f"Roadmap '{roadmap_data.slug}' already exists")

    roadmap = Roadmap(
        slug=roadmap_data.slug,
        title=roadmap_data.title,
        description=roadmap_data.description,
        category=roadmap_data.category,
        difficulty=roadmap_data.difficulty,
        estimated_hours=roadmap_data.estimated_hours,
        nodes=[n.model_dump(mode="json") for n in roadmap_data.nodes],
        edges=[e.model_dump(mode="json") for e in roadmap_data.edges],
        is_active=True,
    )
    db.add(roadmap)
    await db.commit()
    await db.refresh(roadmap)

    logger.info(
        "Roadmap created",
        roadmap_id=roadmap.id,
        slug=roadmap.slug,
        node_count=len(roadmap.nodes),
    )
    return roadmap


async def update_roadmap(
    db: AsyncSession,
    slug: str,
    update_data: RoadmapUpdate,
) -> Roadmap | None:
    """Update a roadmap (admin edits).

    Objective visibility is keyed by position, so reordering a node's
    learning objectives shifts which of them are public.

    Returns:
        Updated roadmap or None

    Note: This function commits the transaction.
    """
    roadmap = await find_roadmap_by_slug(db, slug)
    if not roadmap:
        return None

    if update_data.title is not None:
        roadmap.title = update_data.title
    if update_data.description is not None:
        roadmap.description = update_data.description
    if update_data.category is not None:
        roadmap.category = update_data.category
    if update_data.difficulty is not None:
        roadmap.difficulty = update_data.difficulty
    if update_data.estimated_hours is not None:
        roadmap.estimated_hours = update_data.estimated_hours
    if update_data.nodes is not None:
        roadmap.nodes = [n.model_dump(mode="json") for n in update_data.nodes]
    if update_data.edges is not None:
        roadmap.edges = [e.model_dump(mode="json") for e in update_data.edges]
    if update_data.is_active is not None:
        roadmap.is_active = update_data.is_active

    await db.commit()
    await db.refresh(roadmap)

    logger.info("Roadmap updated", slug=slug)
    return roadmap
