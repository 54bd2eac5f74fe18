"""
Derived display values for catalog entities.

Pure functions taking an entity (or one of its values) and returning
the string a template shows. They are registered as template globals
in ``catalog.src.templating``.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from catalog.src.models.entities import Author, Book, BookInstance, Genre
from catalog.src.models.views import GenreChoice

CATALOG_PREFIX = "/catalog"


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


# ============================================================================
# URLs
# ============================================================================


def author_url(author: Author) -> str:
    return f"{CATALOG_PREFIX}/author/{author.id}"


def book_url(book: Book) -> str:
    return f"{CATALOG_PREFIX}/book/{book.id}"


def bookinstance_url(instance: BookInstance) -> str:
    return f"{CATALOG_PREFIX}/bookinstance/{instance.id}"


def genre_url(genre: Genre) -> str:
    return f"{CATALOG_PREFIX}/genre/{genre.id}"


def catalog_url(path: str = "") -> str:
    """URL of a catalog page, e.g. ``catalog_url("authors")``; the home page without a path."""
    return f"{CATALOG_PREFIX}/{path}" if path else CATALOG_PREFIX


# ============================================================================
# Dates
# ============================================================================


def format_edit_date(value: Any) -> str:
    """
    Format a date for an ``<input type="date">``.

    Strings are returned unchanged so a rejected submission is shown back
    exactly as typed.
    """
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def format_view_date(value: Optional[date]) -> str:
    """Format a date as ``1st Jan 2024``."""
    if not value:
        return ""
    return f"{_ordinal(value.day)} {value.strftime('%b')} {value.year}"


def author_name(author: Author) -> str:
    """Full display name, family name first."""
    return f"{author.family_name}, {author.first_name}"


def author_lifespan(author: Author) -> str:
    """Birth and death dates as ``dd/mm/yyyy - dd/mm/yyyy``.

    Empty when the birth date is unknown; only the birth date when the
    author is alive.
    """
    if not author.date_of_birth:
        return ""
    born = author.date_of_birth.strftime("%d/%m/%Y")
    if not author.date_of_death:
        return born
    return f"{born} - {author.date_of_death.strftime('%d/%m/%Y')}"


def due_back_view(instance: BookInstance) -> str:
    return format_view_date(instance.due_back)


def due_back_edit(instance: BookInstance) -> str:
    return format_edit_date(instance.due_back)


# ============================================================================
# Forms
# ============================================================================


def genre_choices(genres: Iterable[Genre], selected_ids: Iterable[str]) -> List[GenreChoice]:
    """
    Build the genre checkboxes of the book form.

    Args:
        genres: Every genre, in display order
        selected_ids: Identifiers currently selected (submitted or stored)

    Returns:
        One choice per genre, checked iff its identifier is selected
    """
    selected = {str(value) for value in selected_ids}
    return [
        GenreChoice(id=genre.id, name=genre.name, checked=genre.id in selected)
        for genre in genres
    ]


def author_form_values(author: Author) -> Dict[str, Any]:
    return {
        "first_name": author.first_name,
        "family_name": author.family_name,
        "date_of_birth": format_edit_date(author.date_of_birth),
        "date_of_death": format_edit_date(author.date_of_death),
    }


def book_form_values(book: Book) -> Dict[str, Any]:
    return {
        "title": book.title,
        "author": book.author,
        "summary": book.summary,
        "isbn": book.isbn,
        "genre": list(book.genre),
    }


def bookinstance_form_values(instance: BookInstance) -> Dict[str, Any]:
    return {
        "book": instance.book,
        "imprint": instance.imprint,
        "status": instance.status.value,
        "due_back": due_back_edit(instance),
    }
