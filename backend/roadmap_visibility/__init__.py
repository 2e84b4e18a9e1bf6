"""Roadmap visibility service."""
