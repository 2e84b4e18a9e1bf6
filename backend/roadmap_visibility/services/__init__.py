"""Service layer modules."""

from roadmap_visibility.services import (
    audit_log,
    public_roadmap_service,
    roadmap_service,
    visibility_overview_service,
    visibility_service,
    visibility_store,
)

__all__ = [
    "audit_log",
    "public_roadmap_service",
    "roadmap_service",
    "visibility_overview_service",
    "visibility_service",
    "visibility_store",
]
