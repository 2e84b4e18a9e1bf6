"""Admin identity utilities.

Visibility changes are attributed to an admin actor id, which ends up in
both the stored setting (``updated_by``) and the audit log.

WARNING: This is a placeholder implementation. The actor id is taken from
the ``X-Admin-Id`` header and falls back to ``DEFAULT_ADMIN_ID``; nothing
verifies that the caller is actually an admin. Real authentication must sit
in front of the admin routes before production use.
"""

from typing import Annotated

from fastapi import Header

from roadmap_visibility.core.config import get_settings
from roadmap_visibility.core.logging import bind_actor

ADMIN_ID_HEADER = "X-Admin-Id"


async def get_admin_id(
    x_admin_id: Annotated[str | None, Header(alias=ADMIN_ID_HEADER)] = None,
) -> str:
    """Get the acting admin id for HTTP requests.

    Args:
        x_admin_id: Value of the ``X-Admin-Id`` header (injected by FastAPI)

    Returns:
        Admin actor id (str)

    Example:
        @router.put("/visibility")
        async def update(admin_id: CurrentAdmin):  # api/deps.py
            ...
    """
    admin_id = (x_admin_id or "").strip() or get_settings().DEFAULT_ADMIN_ID
    bind_actor(admin_id)
    return admin_id

