"""
Book repository for document store operations.

Books reference one Author and any number of Genres by identifier.
"""

from typing import List

from pymongo import ASCENDING

from catalog.src.models.entities import Book
from catalog.src.repositories.base import MongoRepository, parse_object_id


class BookRepository(MongoRepository[Book]):
    """Repository for the ``books`` collection."""

    collection_name = "books"
    model = Book
    default_sort = (("title", ASCENDING),)
    reference_fields = ("author",)
    reference_list_fields = ("genre",)

    async def find_by_author(self, author_id: str) -> List[Book]:
        """
        Get every book written by an author.

        Args:
            author_id: Author identifier (may be malformed)

        Returns:
            Books referencing the author; empty for unknown identifiers
        """
        oid = parse_object_id(author_id)
        if oid is None:
            return []
        return await self.find({"author": oid})

    async def find_by_genre(self, genre_id: str) -> List[Book]:
        """Get every book tagged with a genre."""
        oid = parse_object_id(genre_id)
        if oid is None:
            return []
        return await self.find({"genre": oid})
