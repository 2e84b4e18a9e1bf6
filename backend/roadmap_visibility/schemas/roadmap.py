"""Roadmap schemas for API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RoadmapNodeType(str, Enum):
    """Kind of node in a roadmap graph."""

    MILESTONE = "milestone"
    TOPIC = "topic"
    OPTIONAL = "optional"


class NodePosition(BaseModel):
    """Canvas position of a node."""

    x: float = 0.0
    y: float = 0.0


class LearningObjectiveSchema(BaseModel):
    """Structured learning objective (plain strings are also accepted)."""

    title: str
    description: str | None = None


LearningObjective = str | LearningObjectiveSchema


class RoadmapNodeSchema(BaseModel):
    """A node (milestone) in a roadmap."""

    id: str
    title: str
    description: str | None = None
    type: RoadmapNodeType = RoadmapNodeType.MILESTONE
    position: NodePosition = Field(default_factory=NodePosition)
    learning_objectives: list[LearningObjective] = Field(default_factory=list)
    estimated_minutes: int = 0
    difficulty: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RoadmapEdgeSchema(BaseModel):
    """A directed edge between two nodes."""

    id: str | None = None
    source: str
    target: str


class RoadmapCreate(BaseModel):
    """Create a new roadmap."""

    slug: str = Field(min_length=1)
    title: str
    description: str = ""
    category: str = "general"
    difficulty: str = "beginner"
    estimated_hours: float = 0.0
    nodes: list[RoadmapNodeSchema] = Field(default_factory=list)
    edges: list[RoadmapEdgeSchema] = Field(default_factory=list)


class RoadmapUpdate(BaseModel):
    """Update an existing roadmap."""

    title: str | None = None
    description: str | None = None
    category: str | None = None
    difficulty: str | None = None
    estimated_hours: float | None = None
    nodes: list[RoadmapNodeSchema] | None = None
    edges: list[RoadmapEdgeSchema] | None = None
    is_active: bool | None = None


class RoadmapResponse(BaseModel):
    """Full roadmap document (admin view)."""

    id: int
    slug: str
    title: str
    description: str
    category: str
    difficulty: str
    estimated_hours: float
    nodes: list[RoadmapNodeSchema]
    edges: list[RoadmapEdgeSchema]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
