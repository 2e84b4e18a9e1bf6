"""Public roadmap content filtering.

Builds the redacted projection of a roadmap that anonymous visitors see:
only public milestones, only their public objectives, and only edges
between surviving nodes.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.roadmap import Roadmap
from roadmap_visibility.schemas.roadmap import RoadmapEdgeSchema, RoadmapNodeSchema
from roadmap_visibility.schemas.visibility import EntityType, PublicRoadmap, PublicRoadmapNode
from roadmap_visibility.services import roadmap_service, visibility_store
from roadmap_visibility.services.visibility_service import (
    VisibilityResolver,
    objective_entity_id,
)

logger = get_logger(__name__)


async def get_public_roadmaps(db: AsyncSession) -> list[PublicRoadmap]:
    """Get all publicly visible roadmaps with filtered content."""
    public_slugs = await visibility_store.find_public_entities(db, EntityType.ROADMAP)
    if not public_slugs:
        return []

    roadmaps = await roadmap_service.list_active_roadmaps(db, public_slugs)
    return [await filter_roadmap_for_public(db, roadmap) for roadmap in roadmaps]


async def get_public_roadmap_by_slug(
    db: AsyncSession,
    slug: str,
    resolver: VisibilityResolver | None = None,
) -> PublicRoadmap | None:
    """Get one public roadmap with filtered content.

    Returns:
        The projection, or None when the roadmap is private, inactive or
        missing (callers treat all three as not found)
    """
    resolver = resolver or VisibilityResolver(db)
    if not await resolver.is_publicly_visible(EntityType.ROADMAP, slug):
        return None

    roadmap = await roadmap_service.find_roadmap_by_slug(db, slug, active_only=True)
    if roadmap is None:
        return None

    return await filter_roadmap_for_public(db, roadmap)


async def filter_roadmap_for_public(db: AsyncSession, roadmap: Roadmap) -> PublicRoadmap:
    """Project a roadmap down to its publicly visible content.

    The roadmap itself is assumed public already. A public roadmap with no
    public milestones yields empty ``nodes`` and ``edges``.
    """
    slug = roadmap.slug
    nodes = [RoadmapNodeSchema.model_validate(n) for n in roadmap.nodes or []]

    milestone_settings = await visibility_store.get_visibility_by_parent(
        db, EntityType.MILESTONE, slug
    )
    public_milestone_ids = {s.entity_id for s in milestone_settings if s.is_public}

    candidates = [node for node in nodes if node.id in public_milestone_ids]

    # One query for the objectives of every surviving milestone
    objective_settings = await visibility_store.get_visibility_by_parents(
        db, EntityType.OBJECTIVE, (node.id for node in candidates)
    )
    public_objective_ids = {
        s.entity_id
        for s in objective_settings
        if s.is_public and s.parent_roadmap_slug == slug
    }

    public_nodes = [
        PublicRoadmapNode(
            id=node.id,
            title=node.title,
            description=node.description,
            type=node.type,
            position=node.position,
            learning_objectives=[
                objective
                for index, objective in enumerate(node.learning_objectives)
                if objective_entity_id(node.id, index) in public_objective_ids
            ],
            estimated_minutes=node.estimated_minutes,
            difficulty=node.difficulty,
        )
        for node in candidates
    ]

    public_node_ids = {node.id for node in public_nodes}
    public_edges = [
        edge
        for edge in (RoadmapEdgeSchema.model_validate(e) for e in roadmap.edges or [])
        if edge.source in public_node_ids and edge.target in public_node_ids
    ]

    logger.debug(
        "Roadmap filtered for public",
        slug=slug,
        node_count=len(nodes),
        public_node_count=len(public_nodes),
        public_edge_count=len(public_edges),
    )

    return PublicRoadmap(
        slug=roadmap.slug,
        title=roadmap.title,
        description=roadmap.description,
        category=roadmap.category,
        difficulty=roadmap.difficulty,
        estimated_hours=roadmap.estimated_hours,
        nodes=public_nodes,
        edges=public_edges,
    )
