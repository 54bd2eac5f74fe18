"""Document store repositories.

One repository per catalog collection. They are constructed once during
application startup and handed to routes through ``Repositories``.
"""

from dataclasses import dataclass

from pymongo.asynchronous.database import AsyncDatabase

from catalog.src.repositories.author_repo import AuthorRepository
from catalog.src.repositories.book_repo import BookRepository
from catalog.src.repositories.bookinstance_repo import BookInstanceRepository
from catalog.src.repositories.genre_repo import GenreRepository


@dataclass(frozen=True)
class Repositories:
    """Container for the per-collection repositories."""

    authors: AuthorRepository
    books: BookRepository
    book_instances: BookInstanceRepository
    genres: GenreRepository

    @classmethod
    def from_database(cls, database: AsyncDatabase) -> "Repositories":
        """Build every repository over one database handle."""
        return cls(
            authors=AuthorRepository(database),
            books=BookRepository(database),
            book_instances=BookInstanceRepository(database),
            genres=GenreRepository(database),
        )


__all__ = [
    "AuthorRepository",
    "BookInstanceRepository",
    "BookRepository",
    "GenreRepository",
    "Repositories",
]
