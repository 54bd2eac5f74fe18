"""
Catalog home page.
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.src.dependencies import get_repositories
from catalog.src.models.entities import BookInstanceStatus
from catalog.src.repositories import Repositories
from catalog.src.services.resolver import resolve
from catalog.src.templating import render

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Catalog"])


@router.get("", response_class=HTMLResponse)
async def index(request: Request, repos: Repositories = Depends(get_repositories)):
    """Render collection counts."""
    counts = await resolve({
        "book_count": lambda: repos.books.count(),
        "book_instance_count": lambda: repos.book_instances.count(),
        "book_instance_available_count": lambda: repos.book_instances.count_by_status(
            BookInstanceStatus.AVAILABLE
        ),
        "author_count": lambda: repos.authors.count(),
        "genre_count": lambda: repos.genres.count(),
    })
    return render(request, "index.html", {"title": "Local Library Home", "data": counts})
