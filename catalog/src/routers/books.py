"""
Book pages.

Routes:
- GET  /books                   : list every book with its author
- GET  /book/create             : empty book form (author and genre choices)
- POST /book/create             : validate and create
- GET  /book/{id}               : book detail with its copies
- GET  /book/{id}/delete        : delete confirmation
- POST /book/{id}/delete        : delete unless copies of the book exist
- GET  /book/{id}/update        : pre-filled book form
- POST /book/{id}/update        : validate and overwrite

The book form carries one checkbox per genre. Whenever it is rendered
the checked state is recomputed from the selection being shown: the
stored genres on update, the submitted ones after a rejected post.
"""

from typing import Any, Dict, Iterable

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.src.dependencies import get_repositories
from catalog.src.errors import NotFoundError
from catalog.src.models.entities import Book
from catalog.src.repositories import Repositories
from catalog.src.services.display import book_form_values, book_url, genre_choices, catalog_url
from catalog.src.services.forms import book_rules
from catalog.src.services.population import populate_book, populate_books
from catalog.src.services.resolver import resolve
from catalog.src.services.validation import ValidationResult, run_pipeline
from catalog.src.templating import redirect, render
from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Books"])

BOOKS_URL = catalog_url("books")


def _book_from(values: Dict[str, Any]) -> Book:
    return Book(
        title=values["title"],
        author=values["author"],
        summary=values["summary"],
        isbn=values["isbn"],
        genre=list(values.get("genre") or []),
    )


async def _form_choices(repos: Repositories, selected: Iterable[str]) -> Dict[str, Any]:
    """Author list and genre checkboxes for the book form."""
    results = await resolve({
        "authors": lambda: repos.authors.find_all(),
        "genres": lambda: repos.genres.find_all(),
    })
    return {
        "authors": results["authors"],
        "genres": genre_choices(results["genres"], selected),
    }


async def _book_with_instances(repos: Repositories, book_id: str) -> Dict[str, Any]:
    return await resolve({
        "book": lambda: repos.books.find_by_id(book_id),
        "book_instances": lambda: repos.book_instances.find_by_book(book_id),
    })


async def _render_invalid(request: Request, repos: Repositories, title: str, result: ValidationResult):
    choices = await _form_choices(repos, result.values.get("genre") or [])
    return render(request, "book_form.html", {
        "title": title,
        "form": result.values,
        "errors": result.errors,
        **choices,
    })


@router.get("/books", response_class=HTMLResponse)
async def book_list(request: Request, repos: Repositories = Depends(get_repositories)):
    books = await populate_books(await repos.books.find_all(), repos)
    return render(request, "book_list.html", {"title": "Book List", "book_list": books})


@router.get("/book/create", response_class=HTMLResponse)
async def book_create_get(request: Request, repos: Repositories = Depends(get_repositories)):
    choices = await _form_choices(repos, [])
    return render(request, "book_form.html", {
        "title": "Create Book",
        "form": {},
        "errors": [],
        **choices,
    })


@router.post("/book/create")
async def book_create_post(request: Request, repos: Repositories = Depends(get_repositories)):
    """Create a book; an absent genre field is an empty selection."""
    result = await run_pipeline(book_rules(), await request.form())

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="book_create").inc()
        return await _render_invalid(request, repos, "Create Book", result)

    book = await repos.books.insert(_book_from(result.values))
    logger.info("book_created", book_id=book.id, genres=len(book.genre))
    return redirect(book_url(book))


@router.get("/book/{book_id}", response_class=HTMLResponse)
async def book_detail(book_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    results = await _book_with_instances(repos, book_id)
    if results["book"] is None:
        raise NotFoundError("Book", book_id)

    view = await populate_book(results["book"], repos)
    return render(request, "book_detail.html", {
        "title": view.book.title,
        "book": view,
        "book_instances": results["book_instances"],
    })


@router.get("/book/{book_id}/delete", response_class=HTMLResponse)
async def book_delete_get(book_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    try:
        results = await _book_with_instances(repos, book_id)
        if results["book"] is None:
            return redirect(BOOKS_URL)
        view = await populate_book(results["book"], repos)
    except Exception as e:
        logger.warning("book_delete_lookup_failed", book_id=book_id, error=str(e), exc_info=True)
        return redirect(BOOKS_URL)

    return render(request, "book_delete.html", {
        "title": view.book.title,
        "book": view,
        "book_instances": results["book_instances"],
    })


@router.post("/book/{book_id}/delete")
async def book_delete_post(book_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    """Delete the book unless copies of it exist."""
    results = await _book_with_instances(repos, book_id)
    if results["book"] is None:
        return redirect(BOOKS_URL)

    if results["book_instances"]:
        get_catalog_metrics().deletions_blocked.labels(collection="books").inc()
        logger.info("book_delete_blocked", book_id=book_id, copies=len(results["book_instances"]))
        view = await populate_book(results["book"], repos)
        return render(request, "book_delete.html", {
            "title": view.book.title,
            "book": view,
            "book_instances": results["book_instances"],
        })

    await repos.books.delete(book_id)
    logger.info("book_deleted", book_id=book_id)
    return redirect(BOOKS_URL)


@router.get("/book/{book_id}/update", response_class=HTMLResponse)
async def book_update_get(book_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    results = await resolve({
        "book": lambda: repos.books.find_by_id(book_id),
        "authors": lambda: repos.authors.find_all(),
        "genres": lambda: repos.genres.find_all(),
    })
    book = results["book"]
    if book is None:
        raise NotFoundError("Book", book_id)

    return render(request, "book_form.html", {
        "title": "Update Book",
        "form": book_form_values(book),
        "errors": [],
        "authors": results["authors"],
        "genres": genre_choices(results["genres"], book.genre),
    })


@router.post("/book/{book_id}/update")
async def book_update_post(book_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    result = await run_pipeline(book_rules(), await request.form())

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="book_update").inc()
        return await _render_invalid(request, repos, "Update Book", result)

    book = await repos.books.replace(book_id, _book_from(result.values))
    if book is None:
        raise NotFoundError("Book", book_id)

    logger.info("book_updated", book_id=book_id)
    return redirect(book_url(book))
