"""Database models."""

from roadmap_visibility.models.roadmap import Roadmap
from roadmap_visibility.models.visibility import VisibilityAuditLog, VisibilitySetting

__all__ = [
    "Roadmap",
    "VisibilitySetting",
    "VisibilityAuditLog",
]
