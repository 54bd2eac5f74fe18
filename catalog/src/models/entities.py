"""
Catalog entity models.

Each model mirrors the shape of one MongoDB collection. References to
other entities are held as identifier strings and joined on demand by
``catalog.src.services.population``; the models carry no behavior, all
derived display strings live in ``catalog.src.services.display``.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookInstanceStatus(str, Enum):
    """Lending state of a physical copy."""

    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"

    @classmethod
    def values(cls) -> List[str]:
        """Status values in declaration order."""
        return [status.value for status in cls]


class Author(BaseModel):
    """An author of one or more books."""

    id: Optional[str] = None
    first_name: str = Field(..., min_length=1, max_length=100)
    family_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None


class Genre(BaseModel):
    """A genre books can be tagged with."""

    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)


class Book(BaseModel):
    """
    A catalogued title.

    ``author`` holds the identifier of the Author document and ``genre``
    the identifiers of zero or more Genre documents.
    """

    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    isbn: str = Field(..., min_length=1)
    genre: List[str] = Field(default_factory=list)


class BookInstance(BaseModel):
    """A physical copy of a Book that can be borrowed."""

    id: Optional[str] = None
    book: str = Field(..., min_length=1)
    imprint: str = Field(..., min_length=1)
    status: BookInstanceStatus = BookInstanceStatus.MAINTENANCE
    due_back: datetime = Field(default_factory=_utcnow)
