"""Pydantic schemas."""

from roadmap_visibility.schemas.roadmap import (
    LearningObjectiveSchema,
    NodePosition,
    RoadmapCreate,
    RoadmapEdgeSchema,
    RoadmapNodeSchema,
    RoadmapNodeType,
    RoadmapResponse,
    RoadmapUpdate,
)
from roadmap_visibility.schemas.visibility import (
    AuditLogEntryResponse,
    EntityType,
    MilestoneVisibilityInfo,
    ObjectiveVisibilityInfo,
    PublicRoadmap,
    PublicRoadmapNode,
    RoadmapVisibilityDetails,
    RoadmapVisibilityInfo,
    VisibilityBatchUpdate,
    VisibilityOverview,
    VisibilitySettingResponse,
    VisibilityStats,
    VisibilityUpdate,
)

__all__ = [
    "RoadmapCreate",
    "RoadmapUpdate",
    "RoadmapResponse",
    "RoadmapNodeSchema",
    "RoadmapNodeType",
    "RoadmapEdgeSchema",
    "NodePosition",
    "LearningObjectiveSchema",
    "EntityType",
    "VisibilityUpdate",
    "VisibilityBatchUpdate",
    "VisibilitySettingResponse",
    "AuditLogEntryResponse",
    "PublicRoadmap",
    "PublicRoadmapNode",
    "VisibilityOverview",
    "VisibilityStats",
    "RoadmapVisibilityInfo",
    "RoadmapVisibilityDetails",
    "MilestoneVisibilityInfo",
    "ObjectiveVisibilityInfo",
]
