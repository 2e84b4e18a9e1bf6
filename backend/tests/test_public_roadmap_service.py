"""Tests for public_roadmap_service content filtering."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import edge, node
from roadmap_visibility.schemas import LearningObjectiveSchema, RoadmapUpdate
from roadmap_visibility.schemas.visibility import EntityType
from roadmap_visibility.services import public_roadmap_service, roadmap_service


async def _publish_objective(set_flag, slug: str, milestone: str, index: int, public=True):
    await set_flag(
        EntityType.OBJECTIVE,
        f"{milestone}-objective-{index}",
        public,
        parent_roadmap_slug=slug,
        parent_milestone_id=milestone,
    )


@pytest.mark.asyncio
async def test_private_roadmap_is_withheld(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap("frontend", nodes=[node("a")])
    await set_flag(EntityType.ROADMAP, "frontend", False)
    await set_flag(EntityType.MILESTONE, "a", True, parent_roadmap_slug="frontend")

    assert await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend") is None


@pytest.mark.asyncio
async def test_unknown_roadmap_is_none(test_session: AsyncSession) -> None:
    assert await public_roadmap_service.get_public_roadmap_by_slug(test_session, "nope") is None


@pytest.mark.asyncio
async def test_inactive_roadmap_is_none(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap("legacy")
    await roadmap_service.update_roadmap(test_session, "legacy", RoadmapUpdate(is_active=False))
    await set_flag(EntityType.ROADMAP, "legacy", True)

    assert await public_roadmap_service.get_public_roadmap_by_slug(test_session, "legacy") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("order", [["a", "b"], ["b", "a"]])
async def test_filter_never_leaks(
    test_session: AsyncSession, make_roadmap, set_flag, order: list[str]
) -> None:
    nodes = {
        "a": node("a", ["x", "y"]),
        "b": node("b", ["z"]),
    }
    await make_roadmap("frontend", nodes=[nodes[k] for k in order])
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.MILESTONE, "a", True, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "b", False, parent_roadmap_slug="frontend")
    await _publish_objective(set_flag, "frontend", "a", 0)
    await _publish_objective(set_flag, "frontend", "a", 1, public=False)
    await _publish_objective(set_flag, "frontend", "b", 0)

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert result is not None
    assert [n.id for n in result.nodes] == ["a"]
    assert result.nodes[0].learning_objectives == ["x"]


@pytest.mark.asyncio
async def test_objectives_without_settings_are_dropped(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    structured = LearningObjectiveSchema(title="Flexbox", description="Layout")
    await make_roadmap("frontend", nodes=[node("a", ["Selectors", structured, "Grid"])])
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.MILESTONE, "a", True, parent_roadmap_slug="frontend")
    await _publish_objective(set_flag, "frontend", "a", 1)

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert result.nodes[0].learning_objectives == [structured]


@pytest.mark.asyncio
async def test_objective_setting_from_other_roadmap_does_not_leak(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap("frontend", nodes=[node("intro", ["x"])])
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.MILESTONE, "intro", True, parent_roadmap_slug="frontend")
    await _publish_objective(set_flag, "backend", "intro", 0)

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert result.nodes[0].learning_objectives == []


@pytest.mark.asyncio
async def test_edges_between_surviving_nodes_only(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap(
        "frontend",
        nodes=[node("a"), node("b"), node("c")],
        edges=[edge("a", "b"), edge("a", "c")],
    )
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.MILESTONE, "a", True, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "c", True, parent_roadmap_slug="frontend")

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert [(e.source, e.target) for e in result.edges] == [("a", "c")]


@pytest.mark.asyncio
async def test_public_roadmap_without_public_content(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap(
        "frontend",
        nodes=[node("a", ["x"]), node("b")],
        edges=[edge("a", "b")],
        category="web",
        difficulty="intermediate",
        estimated_hours=40,
        description="Build for the browser",
    )
    await set_flag(EntityType.ROADMAP, "frontend", True)

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert result is not None
    assert result.nodes == []
    assert result.edges == []
    assert result.model_dump(exclude={"nodes", "edges"}) == {
        "slug": "frontend",
        "title": "Frontend",
        "description": "Build for the browser",
        "category": "web",
        "difficulty": "intermediate",
        "estimated_hours": 40.0,
    }


@pytest.mark.asyncio
async def test_projection_omits_node_metadata(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap(
        "frontend",
        nodes=[node("a", estimated_minutes=30, metadata={"internal_note": "draft"})],
    )
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.MILESTONE, "a", True, parent_roadmap_slug="frontend")

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    dumped = result.model_dump()
    assert "metadata" not in dumped["nodes"][0]
    assert "is_active" not in dumped
    assert dumped["nodes"][0]["estimated_minutes"] == 30


@pytest.mark.asyncio
async def test_get_public_roadmaps(test_session: AsyncSession, make_roadmap, set_flag) -> None:
    await make_roadmap("frontend", nodes=[node("a")])
    await make_roadmap("backend", nodes=[node("b")])
    await make_roadmap("devops")
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.ROADMAP, "backend", True)
    await set_flag(EntityType.ROADMAP, "devops", False)
    await set_flag(EntityType.MILESTONE, "b", True, parent_roadmap_slug="backend")

    result = await public_roadmap_service.get_public_roadmaps(test_session)

    assert [r.slug for r in result] == ["backend", "frontend"]
    assert [n.id for n in result[0].nodes] == ["b"]
    assert result[1].nodes == []


@pytest.mark.asyncio
async def test_get_public_roadmaps_empty(test_session: AsyncSession, make_roadmap) -> None:
    await make_roadmap("frontend")
    assert await public_roadmap_service.get_public_roadmaps(test_session) == []


@pytest.mark.asyncio
async def test_every_node_type_can_be_published(
    test_session: AsyncSession, make_roadmap, set_flag
) -> None:
    await make_roadmap(
        "frontend",
        nodes=[node("a"), node("b", type="topic"), node("c", type="optional")],
    )
    await set_flag(EntityType.ROADMAP, "frontend", True)
    for milestone_id in ("a", "b", "c"):
        await set_flag(EntityType.MILESTONE, milestone_id, True, parent_roadmap_slug="frontend")

    result = await public_roadmap_service.get_public_roadmap_by_slug(test_session, "frontend")

    assert [(n.id, n.type) for n in result.nodes] == [
        ("a", "milestone"),
        ("b", "topic"),
        ("c", "optional"),
    ]
