"""Shared fixtures: in-memory database and roadmap/visibility seeding."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from roadmap_visibility.core.database import build_engine, build_session_factory, create_tables
from roadmap_visibility.models import Roadmap, VisibilitySetting
from roadmap_visibility.schemas import RoadmapCreate, RoadmapEdgeSchema, RoadmapNodeSchema
from roadmap_visibility.schemas.visibility import EntityType
from roadmap_visibility.services import roadmap_service, visibility_store
from roadmap_visibility.services.visibility_store import VisibilityWrite

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

RoadmapFactory = Callable[..., Awaitable[Roadmap]]
SettingFactory = Callable[..., Awaitable[VisibilitySetting]]


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(TEST_DATABASE_URL)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = build_session_factory(test_engine)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_roadmap(test_session: AsyncSession) -> RoadmapFactory:
    """Create a roadmap through the roadmap data layer."""

    async def _make(
        slug: str,
        nodes: list[RoadmapNodeSchema] | None = None,
        edges: list[RoadmapEdgeSchema] | None = None,
        **kwargs,
    ) -> Roadmap:
        return await roadmap_service.create_roadmap(
            test_session,
            RoadmapCreate(
                slug=slug,
                title=kwargs.pop("title", slug.title()),
                nodes=nodes or [],
                edges=edges or [],
                **kwargs,
            ),
        )

    return _make


@pytest_asyncio.fixture
async def set_flag(test_session: AsyncSession) -> SettingFactory:
    """Write a setting straight to the store, bypassing parent validation."""

    async def _set(
        entity_type: EntityType,
        entity_id: str,
        is_public: bool,
        parent_roadmap_slug: str | None = None,
        parent_milestone_id: str | None = None,
    ) -> VisibilitySetting:
        setting = await visibility_store.set_visibility(
            test_session,
            VisibilityWrite(
                entity_type=entity_type,
                entity_id=entity_id,
                is_public=is_public,
                updated_by="seed",
                parent_roadmap_slug=parent_roadmap_slug,
                parent_milestone_id=parent_milestone_id,
            ),
        )
        await test_session.commit()
        return setting

    return _set
