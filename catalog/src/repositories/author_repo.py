"""
Author repository for document store operations.
"""

from pymongo import ASCENDING

from catalog.src.models.entities import Author
from catalog.src.repositories.base import MongoRepository


class AuthorRepository(MongoRepository[Author]):
    """Repository for the ``authors`` collection."""

    collection_name = "authors"
    model = Author
    default_sort = (("family_name", ASCENDING),)
    date_fields = ("date_of_birth", "date_of_death")
