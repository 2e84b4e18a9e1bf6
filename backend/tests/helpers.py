"""Builders for roadmap test data."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.models import VisibilityAuditLog, VisibilitySetting
from roadmap_visibility.schemas import RoadmapEdgeSchema, RoadmapNodeSchema


def node(node_id: str, objectives: list | None = None, **kwargs) -> RoadmapNodeSchema:
    return RoadmapNodeSchema(
        id=node_id,
        title=kwargs.pop("title", node_id.title()),
        learning_objectives=objectives or [],
        **kwargs,
    )


def edge(source: str, target: str) -> RoadmapEdgeSchema:
    return RoadmapEdgeSchema(id=f"{source}->{target}", source=source, target=target)


async def count_settings(db: AsyncSession) -> int:
    return await db.scalar(select(func.count()).select_from(VisibilitySetting))


async def count_audit_entries(db: AsyncSession) -> int:
    return await db.scalar(select(func.count()).select_from(VisibilityAuditLog))
