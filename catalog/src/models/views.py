"""View models handed to templates."""

from typing import List, Optional

from pydantic import BaseModel, Field

from catalog.src.models.entities import Author, Book, BookInstance, Genre


class GenreChoice(BaseModel):
    """One checkbox of the genre multi-select on the book form."""

    id: str
    name: str
    checked: bool = False


class BookView(BaseModel):
    """A Book with its author and genres joined.

    ``author`` is ``None`` when the referenced document no longer exists.
    """

    book: Book
    author: Optional[Author] = None
    genres: List[Genre] = Field(default_factory=list)


class BookInstanceView(BaseModel):
    """A BookInstance with its Book (and that Book's author) joined."""

    instance: BookInstance
    book: Optional[Book] = None
    author: Optional[Author] = None
