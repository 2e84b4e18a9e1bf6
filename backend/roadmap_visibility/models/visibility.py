"""Visibility setting and audit log models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roadmap_visibility.core.database import Base


class VisibilitySetting(Base):
    """Own (non-hierarchical) visibility flag of one roadmap entity."""

    __tablename__ = "visibility_settings"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="unique_visibility_entity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    entity_type: Mapped[str] = mapped_column(String, index=True)  # roadmap, milestone, objective
    entity_id: Mapped[str] = mapped_column(String)

    # Hierarchy
    parent_roadmap_slug: Mapped[str | None] = mapped_column(String, index=True, default=None)
    parent_milestone_id: Mapped[str | None] = mapped_column(String, index=True, default=None)

    is_public: Mapped[bool] = mapped_column(Boolean, default=False)

    # Audit fields
    updated_by: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class VisibilityAuditLog(Base):
    """Append-only record of a single visibility change."""

    __tablename__ = "visibility_audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_id: Mapped[str] = mapped_column(String, index=True)
    action: Mapped[str] = mapped_column(String, default="update")  # update, clear

    entity_type: Mapped[str] = mapped_column(String)
    entity_id: Mapped[str] = mapped_column(String, index=True)

    # None when no prior setting existed
    old_value: Mapped[bool | None] = mapped_column(Boolean, default=None)
    # None when the setting was cleared
    new_value: Mapped[bool | None] = mapped_column(Boolean, default=None)

    parent_roadmap_slug: Mapped[str | None] = mapped_column(String, default=None)
    parent_milestone_id: Mapped[str | None] = mapped_column(String, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
