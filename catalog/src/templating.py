"""
Jinja2 template rendering.

Templates ship inside the package. The display helpers are exposed as
template globals so templates never derive strings themselves.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from catalog.src.services import display

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    author_name=display.author_name,
    author_url=display.author_url,
    author_lifespan=display.author_lifespan,
    book_url=display.book_url,
    bookinstance_url=display.bookinstance_url,
    genre_url=display.genre_url,
    catalog_url=display.catalog_url,
    due_back_view=display.due_back_view,
    format_edit_date=display.format_edit_date,
)


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    """
    Render a template to an HTML response.

    Args:
        request: Current request (needed by Jinja2Templates)
        name: Template file name
        context: Template variables
        status_code: HTTP status of the response

    Returns:
        Rendered template response
    """
    return templates.TemplateResponse(request, name, context or {}, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    """Redirect the browser to another catalog page (HTTP 302)."""
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
