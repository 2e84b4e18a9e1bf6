"""API dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_visibility.core.auth import get_admin_id
from roadmap_visibility.core.database import get_session
from roadmap_visibility.services.visibility_service import VisibilityResolver


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


async def get_resolver(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VisibilityResolver:
    """Visibility resolver scoped to the current request."""
    return VisibilityResolver(db)


# Database dependency
DBDep = Annotated[AsyncSession, Depends(get_db)]

# Request-scoped resolver dependency
ResolverDep = Annotated[VisibilityResolver, Depends(get_resolver)]

# Acting admin id (placeholder auth, see core.auth)
CurrentAdmin = Annotated[str, Depends(get_admin_id)]
