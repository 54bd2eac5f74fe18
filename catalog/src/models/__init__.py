"""Data models for the catalog.

This package contains the Pydantic entity models stored in the document
store and the view models handed to templates.
"""

from catalog.src.models.entities import (
    Author,
    Book,
    BookInstance,
    BookInstanceStatus,
    Genre,
)
from catalog.src.models.views import (
    BookInstanceView,
    BookView,
    GenreChoice,
)

__all__ = [
    "Author",
    "Book",
    "BookInstance",
    "BookInstanceStatus",
    "Genre",
    "BookInstanceView",
    "BookView",
    "GenreChoice",
]
