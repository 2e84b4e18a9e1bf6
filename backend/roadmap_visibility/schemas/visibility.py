"""Visibility schemas: settings, audit entries, public projection, admin views."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from roadmap_visibility.schemas.roadmap import (
    LearningObjective,
    NodePosition,
    RoadmapEdgeSchema,
    RoadmapNodeType,
)


class EntityType(str, Enum):
    """Entities that carry a visibility flag."""

    ROADMAP = "roadmap"
    MILESTONE = "milestone"
    OBJECTIVE = "objective"


class VisibilityUpdate(BaseModel):
    """Set the own visibility flag of one entity."""

    entity_type: EntityType
    entity_id: str = Field(min_length=1)
    is_public: bool
    parent_roadmap_slug: str | None = None
    parent_milestone_id: str | None = None


class VisibilityBatchUpdate(BaseModel):
    """Several visibility updates applied together."""

    updates: list[VisibilityUpdate]


class VisibilitySettingResponse(BaseModel):
    """Stored visibility setting."""

    entity_type: EntityType
    entity_id: str
    is_public: bool
    parent_roadmap_slug: str | None
    parent_milestone_id: str | None
    updated_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuditLogEntryResponse(BaseModel):
    """Audit log entry."""

    id: int
    actor_id: str
    action: str
    entity_type: EntityType
    entity_id: str
    old_value: bool | None
    new_value: bool | None
    parent_roadmap_slug: str | None
    parent_milestone_id: str | None
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Public projection
# ============================================================================


class PublicRoadmapNode(BaseModel):
    """Roadmap node as served to anonymous visitors."""

    id: str
    title: str
    description: str | None = None
    type: RoadmapNodeType
    position: NodePosition
    # Only public objectives included
    learning_objectives: list[LearningObjective]
    estimated_minutes: int = 0
    difficulty: str | None = None


class PublicRoadmap(BaseModel):
    """Redacted roadmap containing only publicly visible content."""

    slug: str
    title: str
    description: str
    category: str
    difficulty: str
    estimated_hours: float
    nodes: list[PublicRoadmapNode]
    edges: list[RoadmapEdgeSchema]


# ============================================================================
# Admin views
# ============================================================================


class VisibilityStats(BaseModel):
    """Totals across all active roadmaps (own flags)."""

    total_roadmaps: int = 0
    public_roadmaps: int = 0
    total_milestones: int = 0
    public_milestones: int = 0
    total_objectives: int = 0
    public_objectives: int = 0


class RoadmapVisibilityInfo(BaseModel):
    """Per-roadmap row of the overview."""

    slug: str
    title: str
    is_public: bool
    milestone_count: int
    public_milestone_count: int


class VisibilityOverview(BaseModel):
    """Admin overview of raw visibility flags."""

    roadmaps: list[RoadmapVisibilityInfo]
    stats: VisibilityStats


class ObjectiveVisibilityInfo(BaseModel):
    index: int
    objective_id: str
    title: str
    is_public: bool
    effectively_public: bool


class MilestoneVisibilityInfo(BaseModel):
    node_id: str
    title: str
    is_public: bool
    effectively_public: bool
    objectives: list[ObjectiveVisibilityInfo]


class RoadmapVisibilityDetails(BaseModel):
    """Raw and effective visibility of every node in one roadmap."""

    roadmap: RoadmapVisibilityInfo
    milestones: list[MilestoneVisibilityInfo]
