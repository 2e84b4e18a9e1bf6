"""Tests for visibility_store."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import count_settings
from roadmap_visibility.schemas.visibility import EntityType
from roadmap_visibility.services import visibility_store
from roadmap_visibility.services.visibility_store import VisibilityWrite


@pytest.mark.asyncio
async def test_get_visibility_missing_returns_none(test_session: AsyncSession) -> None:
    result = await visibility_store.get_visibility(test_session, EntityType.ROADMAP, "nope")
    assert result is None


@pytest.mark.asyncio
async def test_set_visibility_creates_then_replaces(test_session: AsyncSession) -> None:
    created = await visibility_store.set_visibility(
        test_session,
        VisibilityWrite(
            entity_type=EntityType.MILESTONE,
            entity_id="intro",
            is_public=True,
            updated_by="admin-1",
            parent_roadmap_slug="frontend",
        ),
    )
    assert created.id is not None
    assert created.entity_type == "milestone"
    assert created.is_public is True

    replaced = await visibility_store.set_visibility(
        test_session,
        VisibilityWrite(
            entity_type=EntityType.MILESTONE,
            entity_id="intro",
            is_public=False,
            updated_by="admin-2",
            parent_roadmap_slug="backend",
        ),
    )
    assert replaced.id == created.id
    assert replaced.is_public is False
    assert replaced.updated_by == "admin-2"
    assert replaced.parent_roadmap_slug == "backend"
    assert await count_settings(test_session) == 1


@pytest.mark.asyncio
async def test_get_visibility_batch(test_session: AsyncSession, set_flag) -> None:
    await set_flag(EntityType.ROADMAP, "frontend", True)
    await set_flag(EntityType.ROADMAP, "backend", False)
    # Same id under another type must not be picked up
    await set_flag(EntityType.MILESTONE, "devops", True, parent_roadmap_slug="frontend")

    result = await visibility_store.get_visibility_batch(
        test_session, EntityType.ROADMAP, ["frontend", "backend", "devops"]
    )
    assert set(result) == {"frontend", "backend"}
    assert result["frontend"].is_public is True
    assert result["backend"].is_public is False


@pytest.mark.asyncio
async def test_get_visibility_batch_empty_input(test_session: AsyncSession) -> None:
    assert await visibility_store.get_visibility_batch(test_session, EntityType.ROADMAP, []) == {}


@pytest.mark.asyncio
async def test_get_visibility_by_parent(test_session: AsyncSession, set_flag) -> None:
    await set_flag(EntityType.MILESTONE, "m1", True, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "m2", False, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "b1", True, parent_roadmap_slug="backend")
    await set_flag(
        EntityType.OBJECTIVE,
        "m1-objective-0",
        True,
        parent_roadmap_slug="frontend",
        parent_milestone_id="m1",
    )

    milestones = await visibility_store.get_visibility_by_parent(
        test_session, EntityType.MILESTONE, "frontend"
    )
    assert [s.entity_id for s in milestones] == ["m1", "m2"]

    objectives = await visibility_store.get_visibility_by_parent(
        test_session, EntityType.OBJECTIVE, "m1"
    )
    assert [s.entity_id for s in objectives] == ["m1-objective-0"]

    # Roadmaps have no parent
    assert (
        await visibility_store.get_visibility_by_parent(test_session, EntityType.ROADMAP, "x")
        == []
    )


@pytest.mark.asyncio
async def test_get_visibility_by_parents(test_session: AsyncSession, set_flag) -> None:
    await set_flag(EntityType.MILESTONE, "m1", True, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "b1", True, parent_roadmap_slug="backend")
    await set_flag(EntityType.MILESTONE, "d1", True, parent_roadmap_slug="devops")

    result = await visibility_store.get_visibility_by_parents(
        test_session, EntityType.MILESTONE, ["frontend", "backend"]
    )
    assert sorted(s.entity_id for s in result) == ["b1", "m1"]


@pytest.mark.asyncio
async def test_find_public_entities_uses_own_flag(test_session: AsyncSession, set_flag) -> None:
    await set_flag(EntityType.ROADMAP, "frontend", False)
    # Public own flag even though its roadmap is private
    await set_flag(EntityType.MILESTONE, "m1", True, parent_roadmap_slug="frontend")
    await set_flag(EntityType.MILESTONE, "m2", False, parent_roadmap_slug="frontend")

    assert await visibility_store.find_public_entities(test_session, EntityType.ROADMAP) == []
    assert await visibility_store.find_public_entities(test_session, EntityType.MILESTONE) == [
        "m1"
    ]


@pytest.mark.asyncio
async def test_has_and_delete_visibility(test_session: AsyncSession, set_flag) -> None:
    await set_flag(EntityType.ROADMAP, "frontend", True)

    assert await visibility_store.has_visibility_setting(
        test_session, EntityType.ROADMAP, "frontend"
    )
    assert await visibility_store.delete_visibility(test_session, EntityType.ROADMAP, "frontend")
    assert not await visibility_store.has_visibility_setting(
        test_session, EntityType.ROADMAP, "frontend"
    )
    assert not await visibility_store.delete_visibility(
        test_session, EntityType.ROADMAP, "frontend"
    )


@pytest.mark.asyncio
async def test_set_visibility_batch_keeps_order(test_session: AsyncSession) -> None:
    writes = [
        VisibilityWrite(EntityType.MILESTONE, "m2", False, "admin", "frontend"),
        VisibilityWrite(EntityType.MILESTONE, "m1", True, "admin", "frontend"),
    ]
    result = await visibility_store.set_visibility_batch(test_session, writes)
    assert [s.entity_id for s in result] == ["m2", "m1"]
    assert await count_settings(test_session) == 2
