"""API routes."""

from roadmap_visibility.api.routes import public, roadmaps, visibility

__all__ = ["public", "roadmaps", "visibility"]
