"""
BookInstance repository for document store operations.
"""

from typing import List

from catalog.src.models.entities import BookInstance, BookInstanceStatus
from catalog.src.repositories.base import MongoRepository, parse_object_id


class BookInstanceRepository(MongoRepository[BookInstance]):
    """Repository for the ``bookinstances`` collection."""

    collection_name = "bookinstances"
    model = BookInstance
    reference_fields = ("book",)

    async def find_by_book(self, book_id: str) -> List[BookInstance]:
        """Get every copy of a book."""
        oid = parse_object_id(book_id)
        if oid is None:
            return []
        return await self.find({"book": oid})

    async def count_by_status(self, status: BookInstanceStatus) -> int:
        """Count copies currently in a lending state."""
        return await self.count({"status": status.value})
