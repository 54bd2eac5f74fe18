"""
FastAPI dependency injection for repositories.

Provides injectable dependencies for:
- Repository instances (built once at startup)

All dependencies use FastAPI's dependency injection system so tests can
replace them through ``app.dependency_overrides``.
"""

import structlog
from fastapi import Request

from catalog.src.repositories import Repositories

logger = structlog.get_logger(__name__)


def get_repositories(request: Request) -> Repositories:
    """
    Get the repositories created during application startup.

    Returns:
        Repositories container

    Raises:
        RuntimeError: If the application lifespan has not run

    Example:
        @router.get("/authors")
        async def author_list(repos: Repositories = Depends(get_repositories)):
            return await repos.authors.find_all()
    """
    repos = getattr(request.app.state, "repositories", None)
    if repos is None:
        logger.error("repositories_not_initialized")
        raise RuntimeError(
            "Repositories not initialized. They are created by the application lifespan."
        )
    return repos

