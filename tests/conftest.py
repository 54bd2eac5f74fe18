"""
Shared fixtures for catalog tests.

Routes are exercised through Starlette's TestClient with the repositories
dependency overridden by repositories over an in-memory database, so no
document store is needed outside tests marked ``integration``.
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from catalog.src.dependencies import get_repositories
from catalog.src.main import app
from catalog.src.repositories import Repositories
from tests.doubles.in_memory_mongo import InMemoryDatabase


@pytest.fixture
def database():
    """Empty in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def repos(database):
    """Repositories over the in-memory database."""
    return Repositories.from_database(database)


@pytest.fixture
def client(repos):
    """Test client whose routes see ``repos``; redirects are not followed."""
    app.dependency_overrides[get_repositories] = lambda: repos
    try:
        yield TestClient(app, raise_server_exceptions=False, follow_redirects=False)
    finally:
        app.dependency_overrides.clear()


# ============================================================================
# SEED DATA
# ============================================================================


class CatalogSeeder:
    """Insert raw documents the way they are stored in MongoDB."""

    def __init__(self, database: InMemoryDatabase):
        self.database = database

    def author(self, first_name="Patrick", family_name="Rothfuss", date_of_birth=None, date_of_death=None):
        return self.database["authors"].add({
            "first_name": first_name,
            "family_name": family_name,
            "date_of_birth": date_of_birth,
            "date_of_death": date_of_death,
        })

    def genre(self, name="Fantasy"):
        return self.database["genres"].add({"name": name})

    def book(self, author_id, title="The Name of the Wind", genre_ids=(), summary="A summary", isbn="9781473211896"):
        return self.database["books"].add({
            "title": title,
            "author": ObjectId(author_id),
            "summary": summary,
            "isbn": isbn,
            "genre": [ObjectId(genre_id) for genre_id in genre_ids],
        })

    def book_instance(self, book_id, imprint="Gollancz, 2011", status="Available", due_back=None):
        return self.database["bookinstances"].add({
            "book": ObjectId(book_id),
            "imprint": imprint,
            "status": status,
            "due_back": due_back or datetime(2024, 3, 1, tzinfo=timezone.utc),
        })

    def stored(self, collection, entity_id):
        """Return the raw stored document, or None."""
        for document in self.database[collection].documents:
            if document["_id"] == ObjectId(entity_id):
                return document
        return None


@pytest.fixture
def seed(database):
    """Seeder writing raw documents into the in-memory database."""
    return CatalogSeeder(database)
