"""
Author pages.

Routes:
- GET  /authors                 : list every author
- GET  /author/create           : empty author form
- POST /author/create           : validate and create
- GET  /author/{id}             : author detail with their books
- GET  /author/{id}/delete      : delete confirmation
- POST /author/{id}/delete      : delete unless books still reference the author
- GET  /author/{id}/update      : pre-filled author form
- POST /author/{id}/update      : validate and overwrite
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.src.dependencies import get_repositories
from catalog.src.errors import NotFoundError
from catalog.src.models.entities import Author
from catalog.src.repositories import Repositories
from catalog.src.services.display import author_form_values, author_name, author_url, catalog_url
from catalog.src.services.forms import author_rules
from catalog.src.services.resolver import resolve
from catalog.src.services.validation import run_pipeline
from catalog.src.templating import redirect, render
from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Authors"])

AUTHORS_URL = catalog_url("authors")


def _author_from(values: Dict[str, Any]) -> Author:
    return Author(
        first_name=values["first_name"],
        family_name=values["family_name"],
        date_of_birth=values.get("date_of_birth") or None,
        date_of_death=values.get("date_of_death") or None,
    )


async def _author_with_books(repos: Repositories, author_id: str) -> Dict[str, Any]:
    return await resolve({
        "author": lambda: repos.authors.find_by_id(author_id),
        "books": lambda: repos.books.find_by_author(author_id),
    })


@router.get("/authors", response_class=HTMLResponse)
async def author_list(request: Request, repos: Repositories = Depends(get_repositories)):
    authors = await repos.authors.find_all()
    return render(request, "author_list.html", {"title": "Author List", "author_list": authors})


@router.get("/author/create", response_class=HTMLResponse)
async def author_create_get(request: Request):
    return render(request, "author_form.html", {"title": "Create Author", "form": {}, "errors": []})


@router.post("/author/create")
async def author_create_post(request: Request, repos: Repositories = Depends(get_repositories)):
    """Create an author, or re-render the form with the sanitized input and errors."""
    result = await run_pipeline(author_rules(), await request.form())

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="author_create").inc()
        return render(request, "author_form.html", {
            "title": "Create Author",
            "form": result.values,
            "errors": result.errors,
        })

    author = await repos.authors.insert(_author_from(result.values))
    logger.info("author_created", author_id=author.id)
    return redirect(author_url(author))


@router.get("/author/{author_id}", response_class=HTMLResponse)
async def author_detail(author_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    results = await _author_with_books(repos, author_id)
    if results["author"] is None:
        raise NotFoundError("Author", author_id)

    return render(request, "author_detail.html", {
        "title": author_name(results["author"]),
        "author": results["author"],
        "books": results["books"],
    })


@router.get("/author/{author_id}/delete", response_class=HTMLResponse)
async def author_delete_get(author_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    """Show the author and the books that would block deletion."""
    try:
        results = await _author_with_books(repos, author_id)
    except Exception as e:
        logger.warning("author_delete_lookup_failed", author_id=author_id, error=str(e), exc_info=True)
        return redirect(AUTHORS_URL)

    if results["author"] is None:
        return redirect(AUTHORS_URL)

    return render(request, "author_delete.html", {
        "title": author_name(results["author"]),
        "author": results["author"],
        "books": results["books"],
    })


@router.post("/author/{author_id}/delete")
async def author_delete_post(author_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    """Delete the author unless books still reference it."""
    results = await _author_with_books(repos, author_id)
    author = results["author"]
    if author is None:
        return redirect(AUTHORS_URL)

    if results["books"]:
        get_catalog_metrics().deletions_blocked.labels(collection="authors").inc()
        logger.info("author_delete_blocked", author_id=author_id, books=len(results["books"]))
        return render(request, "author_delete.html", {
            "title": author_name(author),
            "author": author,
            "books": results["books"],
        })

    await repos.authors.delete(author_id)
    logger.info("author_deleted", author_id=author_id)
    return redirect(AUTHORS_URL)


@router.get("/author/{author_id}/update", response_class=HTMLResponse)
async def author_update_get(author_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    author = await repos.authors.find_by_id(author_id)
    if author is None:
        raise NotFoundError("Author", author_id)

    return render(request, "author_form.html", {
        "title": "Update Author",
        "form": author_form_values(author),
        "errors": [],
    })


@router.post("/author/{author_id}/update")
async def author_update_post(author_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    result = await run_pipeline(author_rules(), await request.form())

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="author_update").inc()
        return render(request, "author_form.html", {
            "title": "Update Author",
            "form": result.values,
            "errors": result.errors,
        })

    author = await repos.authors.replace(author_id, _author_from(result.values))
    if author is None:
        raise NotFoundError("Author", author_id)

    logger.info("author_updated", author_id=author_id)
    return redirect(author_url(author))
