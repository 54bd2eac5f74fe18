"""
BookInstance (physical copy) pages.

Routes:
- GET  /bookinstances           : list every copy with its book
- GET  /bookinstance/create     : empty copy form (book and status choices)
- POST /bookinstance/create     : validate and create
- GET  /bookinstance/{id}       : copy detail
- GET  /bookinstance/{id}/delete: delete confirmation
- POST /bookinstance/{id}/delete: delete (nothing depends on a copy)
- GET  /bookinstance/{id}/update: pre-filled copy form
- POST /bookinstance/{id}/update: validate and overwrite
"""

from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from catalog.src.dependencies import get_repositories
from catalog.src.errors import NotFoundError
from catalog.src.models.entities import BookInstance, BookInstanceStatus
from catalog.src.repositories import Repositories
from catalog.src.services.display import bookinstance_form_values, bookinstance_url, catalog_url
from catalog.src.services.forms import bookinstance_rules
from catalog.src.services.population import populate_books, populate_instance, populate_instances
from catalog.src.services.resolver import resolve
from catalog.src.services.validation import ValidationResult, run_pipeline
from catalog.src.templating import redirect, render
from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Book Instances"])

BOOKINSTANCES_URL = catalog_url("bookinstances")


def _instance_from(values: Dict[str, Any], due_back: Optional[datetime] = None) -> BookInstance:
    data: Dict[str, Any] = {
        "book": values["book"],
        "imprint": values["imprint"],
        "status": BookInstanceStatus(values["status"]),
    }
    if values.get("due_back"):
        data["due_back"] = values["due_back"]
    elif due_back is not None:
        data["due_back"] = due_back
    return BookInstance(**data)


async def _form_choices(repos: Repositories) -> Dict[str, Any]:
    books = await populate_books(await repos.books.find_all(), repos)
    return {"books": books, "statuses": BookInstanceStatus.values()}


async def _validate(request: Request) -> ValidationResult:
    return await run_pipeline(
        bookinstance_rules(),
        await request.form(),
        context={"statuses": BookInstanceStatus.values()},
    )


@router.get("/bookinstances", response_class=HTMLResponse)
async def bookinstance_list(request: Request, repos: Repositories = Depends(get_repositories)):
    instances = await populate_instances(await repos.book_instances.find_all(), repos)
    return render(request, "bookinstance_list.html", {
        "title": "Book Instance List",
        "bookinstance_list": instances,
    })


@router.get("/bookinstance/create", response_class=HTMLResponse)
async def bookinstance_create_get(request: Request, repos: Repositories = Depends(get_repositories)):
    choices = await _form_choices(repos)
    return render(request, "bookinstance_form.html", {
        "title": "Create BookInstance",
        "form": {},
        "errors": [],
        **choices,
    })


@router.post("/bookinstance/create")
async def bookinstance_create_post(request: Request, repos: Repositories = Depends(get_repositories)):
    """Create a copy; an empty due date defaults to now."""
    result = await _validate(request)

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="bookinstance_create").inc()
        choices = await _form_choices(repos)
        return render(request, "bookinstance_form.html", {
            "title": "Create BookInstance",
            "form": result.values,
            "errors": result.errors,
            **choices,
        })

    instance = await repos.book_instances.insert(_instance_from(result.values))
    logger.info("bookinstance_created", bookinstance_id=instance.id, book_id=instance.book)
    return redirect(bookinstance_url(instance))


@router.get("/bookinstance/{instance_id}", response_class=HTMLResponse)
async def bookinstance_detail(instance_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    instance = await repos.book_instances.find_by_id(instance_id)
    if instance is None:
        raise NotFoundError("Book copy", instance_id)

    view = await populate_instance(instance, repos)
    return render(request, "bookinstance_detail.html", {
        "title": f"Copy: {instance.id}",
        "view": view,
        "instance": view.instance,
    })


@router.get("/bookinstance/{instance_id}/delete", response_class=HTMLResponse)
async def bookinstance_delete_get(instance_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    try:
        instance = await repos.book_instances.find_by_id(instance_id)
        if instance is None:
            return redirect(BOOKINSTANCES_URL)
        view = await populate_instance(instance, repos)
    except Exception as e:
        logger.warning("bookinstance_delete_lookup_failed", bookinstance_id=instance_id, error=str(e), exc_info=True)
        return redirect(BOOKINSTANCES_URL)

    return render(request, "bookinstance_delete.html", {
        "title": "Delete Copy",
        "view": view,
        "instance": view.instance,
    })


@router.post("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_post(instance_id: str, repos: Repositories = Depends(get_repositories)):
    if await repos.book_instances.delete(instance_id):
        logger.info("bookinstance_deleted", bookinstance_id=instance_id)
    return redirect(BOOKINSTANCES_URL)


@router.get("/bookinstance/{instance_id}/update", response_class=HTMLResponse)
async def bookinstance_update_get(instance_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    results = await resolve({
        "instance": lambda: repos.book_instances.find_by_id(instance_id),
        "choices": lambda: _form_choices(repos),
    })
    instance = results["instance"]
    if instance is None:
        raise NotFoundError("Book copy", instance_id)

    return render(request, "bookinstance_form.html", {
        "title": "Update BookInstance",
        "form": bookinstance_form_values(instance),
        "errors": [],
        **results["choices"],
    })


@router.post("/bookinstance/{instance_id}/update")
async def bookinstance_update_post(instance_id: str, request: Request, repos: Repositories = Depends(get_repositories)):
    """Overwrite a copy; an empty due date keeps the stored one."""
    result = await _validate(request)

    if not result.is_valid:
        get_catalog_metrics().validation_failures.labels(form="bookinstance_update").inc()
        choices = await _form_choices(repos)
        return render(request, "bookinstance_form.html", {
            "title": "Update BookInstance",
            "form": result.values,
            "errors": result.errors,
            **choices,
        })

    stored = await repos.book_instances.find_by_id(instance_id)
    if stored is None:
        raise NotFoundError("Book copy", instance_id)

    instance = await repos.book_instances.replace(instance_id, _instance_from(result.values, stored.due_back))
    if instance is None:
        raise NotFoundError("Book copy", instance_id)

    logger.info("bookinstance_updated", bookinstance_id=instance_id)
    return redirect(bookinstance_url(instance))
