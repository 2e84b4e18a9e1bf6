"""Roadmap model owned by the roadmap data layer."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roadmap_visibility.core.database import Base


class Roadmap(Base):
    """A learning roadmap: ordered nodes plus the edges between them."""

    __tablename__ = "roadmaps"

    id: Mapped[int] = mapped_column(primary_key=True)
    slug: Mapped[str] = mapped_column(String, unique=True, index=True)

    title: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String, default="general")
    difficulty: Mapped[str] = mapped_column(String, default="beginner")
    estimated_hours: Mapped[float] = mapped_column(Float, default=0.0)

    # Graph
    nodes: Mapped[list[dict[str, object]]] = mapped_column(JSON, default=list)
    edges: Mapped[list[dict[str, object]]] = mapped_column(JSON, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
