"""Admin reporting over visibility settings."""

from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.logging import get_logger
from roadmap_visibility.models.visibility import VisibilitySetting
from roadmap_visibility.schemas.roadmap import RoadmapNodeSchema
from roadmap_visibility.schemas.visibility import (
    EntityType,
    MilestoneVisibilityInfo,
    ObjectiveVisibilityInfo,
    RoadmapVisibilityDetails,
    RoadmapVisibilityInfo,
    VisibilityOverview,
    VisibilityStats,
)
from roadmap_visibility.services import roadmap_service, visibility_store
from roadmap_visibility.services.visibility_service import (
    VisibilityResolver,
    objective_entity_id,
)

logger = get_logger(__name__)


def _objective_title(objective: object) -> str:
    return objective if isinstance(objective, str) else objective.title


def _group_by(settings: list[VisibilitySetting], attr: str) -> dict[str, dict[str, bool]]:
    grouped: dict[str, dict[str, bool]] = defaultdict(dict)
    for setting in settings:
        grouped[getattr(setting, attr)][setting.entity_id] = setting.is_public
    return grouped


async def get_visibility_overview(db: AsyncSession) -> VisibilityOverview:
    """Raw (own-flag) visibility counts across all active roadmaps.

    A milestone marked public under a private roadmap is counted as public
    here; use ``get_roadmap_visibility_details`` for effective visibility.
    """
    roadmaps = await roadmap_service.list_active_roadmaps(db)
    slugs = [r.slug for r in roadmaps]

    roadmap_settings = await visibility_store.get_visibility_batch(db, EntityType.ROADMAP, slugs)
    milestones_by_roadmap = _group_by(
        await visibility_store.get_visibility_by_parents(db, EntityType.MILESTONE, slugs),
        "parent_roadmap_slug",
    )

    node_ids = {node.get("id") for r in roadmaps for node in r.nodes or []}
    objective_settings = await visibility_store.get_visibility_by_parents(
        db, EntityType.OBJECTIVE, (i for i in node_ids if i)
    )
    objectives_by_roadmap = _group_by(objective_settings, "parent_roadmap_slug")

    stats = VisibilityStats(total_roadmaps=len(roadmaps))
    infos: list[RoadmapVisibilityInfo] = []

    for roadmap in roadmaps:
        setting = roadmap_settings.get(roadmap.slug)
        is_public = bool(setting and setting.is_public)
        milestone_flags = milestones_by_roadmap.get(roadmap.slug, {})
        objective_flags = objectives_by_roadmap.get(roadmap.slug, {})

        public_milestone_count = 0
        for raw_node in roadmap.nodes or []:
            node = RoadmapNodeSchema.model_validate(raw_node)
            if milestone_flags.get(node.id, False):
                public_milestone_count += 1

            stats.total_objectives += len(node.learning_objectives)
            stats.public_objectives += sum(
                1
                for index in range(len(node.learning_objectives))
                if objective_flags.get(objective_entity_id(node.id, index), False)
            )

        stats.total_milestones += len(roadmap.nodes or [])
        stats.public_milestones += public_milestone_count
        if is_public:
            stats.public_roadmaps += 1

        infos.append(
            RoadmapVisibilityInfo(
                slug=roadmap.slug,
                title=roadmap.title,
                is_public=is_public,
                milestone_count=len(roadmap.nodes or []),
                public_milestone_count=public_milestone_count,
            )
        )

    return VisibilityOverview(roadmaps=infos, stats=stats)


async def get_roadmap_visibility_details(
    db: AsyncSession,
    slug: str,
    resolver: VisibilityResolver | None = None,
) -> RoadmapVisibilityDetails | None:
    """Raw and effective visibility for every milestone and objective of a roadmap.

    Returns:
        Details, or None if the roadmap is missing or inactive
    """
    roadmap = await roadmap_service.find_roadmap_by_slug(db, slug, active_only=True)
    if roadmap is None:
        return None

    resolver = resolver or VisibilityResolver(db)
    nodes = [RoadmapNodeSchema.model_validate(n) for n in roadmap.nodes or []]

    roadmap_setting = await resolver.get_setting(EntityType.ROADMAP, slug)
    milestone_flags = _group_by(
        await visibility_store.get_visibility_by_parent(db, EntityType.MILESTONE, slug),
        "parent_roadmap_slug",
    ).get(slug, {})
    objective_flags = _group_by(
        await visibility_store.get_visibility_by_parents(
            db, EntityType.OBJECTIVE, (n.id for n in nodes)
        ),
        "parent_roadmap_slug",
    ).get(slug, {})

    milestone_ids = [n.id for n in nodes]
    objective_ids = [
        objective_entity_id(n.id, index)
        for n in nodes
        for index in range(len(n.learning_objectives))
    ]
    effective_milestones = await resolver.resolve_many(EntityType.MILESTONE, milestone_ids)
    effective_objectives = await resolver.resolve_many(EntityType.OBJECTIVE, objective_ids)

    milestones: list[MilestoneVisibilityInfo] = []
    for node in nodes:
        objectives = []
        for index, objective in enumerate(node.learning_objectives):
            objective_id = objective_entity_id(node.id, index)
            objective_public = objective_flags.get(objective_id, False)
            objectives.append(
                ObjectiveVisibilityInfo(
                    index=index,
                    objective_id=objective_id,
                    title=_objective_title(objective),
                    is_public=objective_public,
                    # Settings of a same-named node in another roadmap do not count
                    effectively_public=objective_public and effective_objectives[objective_id],
                )
            )
        milestone_public = milestone_flags.get(node.id, False)
        milestones.append(
            MilestoneVisibilityInfo(
                node_id=node.id,
                title=node.title,
                is_public=milestone_public,
                effectively_public=milestone_public and effective_milestones[node.id],
                objectives=objectives,
            )
        )

    return RoadmapVisibilityDetails(
        roadmap=RoadmapVisibilityInfo(
            slug=roadmap.slug,
            title=roadmap.title,
            is_public=bool(roadmap_setting and roadmap_setting.is_public),
            milestone_count=len(nodes),
            public_milestone_count=sum(1 for m in milestones if m.is_public),
        ),
        milestones=milestones,
    )
