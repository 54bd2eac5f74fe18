"""
Unit tests for reference population.

Dangling references resolve to None (or are dropped from genre lists)
instead of raising.
"""

import pytest
from bson import ObjectId

from catalog.src.services.population import (
    populate_book,
    populate_books,
    populate_instance,
    populate_instances,
)


class TestPopulateBook:
    """Test joining a book's author and genres"""

    @pytest.mark.asyncio
    async def test_author_and_genres(self, repos, seed):
        author_id = seed.author()
        poetry, horror = seed.genre("Poetry"), seed.genre("Horror")
        book = await repos.books.find_by_id(seed.book(author_id, genre_ids=[poetry, horror]))

        view = await populate_book(book, repos)

        assert view.author.id == author_id
        assert sorted(genre.name for genre in view.genres) == ["Horror", "Poetry"]

    @pytest.mark.asyncio
    async def test_dangling_references(self, repos, seed):
        book = await repos.books.find_by_id(seed.book(str(ObjectId()), genre_ids=[str(ObjectId())]))

        view = await populate_book(book, repos)

        assert view.author is None
        assert view.genres == []


class TestPopulateBooks:
    """Test joining authors of many books"""

    @pytest.mark.asyncio
    async def test_each_book_gets_its_author(self, repos, seed):
        first, second = seed.author(), seed.author(first_name="Ursula", family_name="LeGuin")
        seed.book(first, title="A")
        seed.book(second, title="B")
        seed.book(str(ObjectId()), title="C")

        views = await populate_books(await repos.books.find_all(), repos)

        assert [(view.book.title, view.author and view.author.family_name) for view in views] == [
            ("A", "Rothfuss"),
            ("B", "LeGuin"),
            ("C", None),
        ]

    @pytest.mark.asyncio
    async def test_no_books(self, repos):
        assert await populate_books([], repos) == []


class TestPopulateInstances:
    """Test joining books of copies"""

    @pytest.mark.asyncio
    async def test_instance_gets_book_and_author(self, repos, seed):
        author_id = seed.author()
        book_id = seed.book(author_id)
        instance = await repos.book_instances.find_by_id(seed.book_instance(book_id))

        view = await populate_instance(instance, repos)

        assert view.instance == instance
        assert view.book.id == book_id
        assert view.author.id == author_id

    @pytest.mark.asyncio
    async def test_missing_book(self, repos, seed):
        seed.book_instance(str(ObjectId()))

        views = await populate_instances(await repos.book_instances.find_all(), repos)

        assert views[0].book is None
        assert views[0].author is None
