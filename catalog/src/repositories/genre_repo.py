"""
Genre repository for document store operations.

Genre names are unique by convention only: callers check with
``find_by_name`` before writing, the collection has no unique index.
"""

from typing import Any, Dict, Optional

from pymongo import ASCENDING

from catalog.src.models.entities import Genre
from catalog.src.repositories.base import MongoRepository, parse_object_id


class GenreRepository(MongoRepository[Genre]):
    """Repository for the ``genres`` collection."""

    collection_name = "genres"
    model = Genre
    default_sort = (("name", ASCENDING),)

    async def find_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[Genre]:
        """
        Find a genre by exact name.

        Args:
            name: Genre name as stored (already sanitized)
            exclude_id: Identifier to ignore, used when renaming a genre

        Returns:
            The conflicting genre, or None
        """
        query: Dict[str, Any] = {"name": name}
        exclude = parse_object_id(exclude_id)
        if exclude is not None:
            query["_id"] = {"$ne": exclude}
        return await self.find_one(query)
