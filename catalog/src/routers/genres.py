"""
Genre pages.

Routes:
- GET  /genres                  : list every genre
- GET  /genre/create            : empty genre form
- POST /genre/create            : validate; reuse an existing genre of the same name
- GET  /genre/{id}              : genre detail with its books
- GET  /genre/{id}/delete       : delete confirmation
- POST /genre/{id}/delete       : delete unless books are still tagged with it
- GET  /genre/{id}/update       : pre-filled genre form
- POST /genre/{id}/update       : validate (name must stay unique) and overwrite

Genre names are unique by convention: create redirects to the genre
that already carries the name, update rejects a name taken by another
genre.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.src.dependencies import get_repositories
from catalog.src.errors import NotFoundError
from catalog.src.models.entities import Genre
from catalog.src.repositories import Repositories
from catalog.src.services.display import genre_url, catalog_url
from catalog.src.services.forms import genre_rules, genre_update_rules
from catalog.src.services.resolver import resolve
from catalog.src.services.validation import run_pipeline
from catalog.src.templating import redirect, render
from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Genres"])

GENRES_URL = catalog_url("genres")


async def _genre_with_books(repos: Repositories, genre_id: str) -> Dict[str, Any]:
    return await resolve({
        "genre": lambda: repos.genres.find_by_id(genre_id),
        "genre_books": lambda: repos.books.find_by_genre(genre_id),
    })


@router.get("/genres", response_class=HTMLResponse)
async def genre_list(request: Request, repos: Repositories = Depends(get_repositories)):
    genres = await repos.genres.find_all()
    return render(request, "genre_list.html", {"title": "Genre List", "genre_list": genres})


@router.get("/genre/create", response_class=HTMLResponse)
async def genre_create_get(request: Request):
    return render(request, "genre_form.html", {"title": "Create Genre", "form": {}, "errors": []})


@router.post("/genre/create")
async def genre_create_post(request: Request, repos: Repositories = Depends(get_repositories)):
    result = await run_pipeline(genre_rules(), await request.form())

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="genre_create").inc()
        return render(request, "genre_form.html", {
            "title": "Create Genre",
            "form": result.values,
            "errors": result.errors,
        })

    existing = await repos.genres.find_by_name(result.values["name"])
    if existing is not None:
        logger.info("genre_already_exists", genre_id=existing.id, name=existing.name)
        return redirect(genre_url(existing))

    genre = await repos.genres.insert(Genre(name=result.values["name"]))
    logger.info("genre_created", genre_id=genre.id)
    return redirect(genre_url(genre))


@router.get("/genre/{genre_id}", response_class=HTMLResponse)
async def genre_detail(genre_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    results = await _genre_with_books(repos, genre_id)
    if results["genre"] is None:
        raise NotFoundError("Genre", genre_id)

    return render(request, "genre_detail.html", {
        "title": "Genre Detail",
        "genre": results["genre"],
        "genre_books": results["genre_books"],
    })


@router.get("/genre/{genre_id}/delete", response_class=HTMLResponse)
async def genre_delete_get(genre_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    try:
        results = await _genre_with_books(repos, genre_id)
    except Exception as e:
        logger.warning("genre_delete_lookup_failed", genre_id=genre_id, error=str(e), exc_info=True)
        return redirect(GENRES_URL)

    if results["genre"] is None:
        return redirect(GENRES_URL)

    return render(request, "genre_delete.html", {
        "title": "Delete Genre",
        "genre": results["genre"],
        "genre_books": results["genre_books"],
    })


@router.post("/genre/{genre_id}/delete")
async def genre_delete_post(genre_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    """Delete the genre unless books are still tagged with it."""
    results = await _genre_with_books(repos, genre_id)
    genre = results["genre"]
    if genre is None:
        return redirect(GENRES_URL)

    if results["genre_books"]:
        get_catalog_metrics().deletions_blocked.labels(collection="genres").inc()
        logger.info("genre_delete_blocked", genre_id=genre_id, books=len(results["genre_books"]))
        return render(request, "genre_delete.html", {
            "title": "Delete Genre",
            "genre": genre,
            "genre_books": results["genre_books"],
        })

    await repos.genres.delete(genre_id)
    logger.info("genre_deleted", genre_id=genre_id)
    return redirect(GENRES_URL)


@router.get("/genre/{genre_id}/update", response_class=HTMLResponse)
async def genre_update_get(genre_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    genre = await repos.genres.find_by_id(genre_id)
    if genre is None:
        raise NotFoundError("Genre", genre_id)

    return render(request, "genre_form.html", {
        "title": "Update Genre",
        "form": {"name": genre.name},
        "errors": [],
    })


@router.post("/genre/{genre_id}/update")
async def genre_update_post(genre_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    result = await run_pipeline(
        genre_update_rules(repos.genres),
        await request.form(),
        context={"genre_id": genre_id},
    )

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="genre_update").inc()
        return render(request, "genre_form.html", {
            "title": "Update Genre",
            "form": result.values,
            "errors": result.errors,
        })

    genre = await repos.genres.replace(genre_id, Genre(name=result.values["name"]))
    if genre is None:
        raise NotFoundError("Genre", genre_id)

    logger.info("genre_updated", genre_id=genre_id)
    return redirect(genre_url(genre))
