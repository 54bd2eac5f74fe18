"""
Unit tests for derived display values.
"""

from datetime import date, datetime, timezone

import pytest

from catalog.src.models.entities import Author, Book, BookInstance, BookInstanceStatus, Genre
from catalog.src.services.display import (
    author_lifespan,
    author_name,
    author_url,
    book_url,
    bookinstance_form_values,
    bookinstance_url,
    catalog_url,
    due_back_view,
    format_edit_date,
    format_view_date,
    genre_choices,
    genre_url,
)


def _author(**kwargs):
    return Author(id="a1", first_name="Ursula", family_name="LeGuin", **kwargs)


class TestAuthorDisplay:
    """Test author name and lifespan"""

    def test_name_family_first(self):
        assert author_name(_author()) == "LeGuin, Ursula"

    def test_lifespan_both_dates(self):
        author = _author(date_of_birth=date(1929, 10, 21), date_of_death=date(2018, 1, 22))

        assert author_lifespan(author) == "21/10/1929 - 22/01/2018"

    def test_lifespan_living_author(self):
        assert author_lifespan(_author(date_of_birth=date(1929, 10, 21))) == "21/10/1929"

    def test_lifespan_without_birth_date(self):
        assert author_lifespan(_author(date_of_death=date(2018, 1, 22))) == ""


class TestUrls:
    """Test catalog URLs"""

    def test_entity_urls(self):
        assert author_url(_author()) == "/catalog/author/a1"
        assert genre_url(Genre(id="g1", name="Poetry")) == "/catalog/genre/g1"
        assert book_url(Book(id="b1", title="t", author="a1", summary="s", isbn="i")) == "/catalog/book/b1"
        assert bookinstance_url(BookInstance(id="c1", book="b1", imprint="i")) == "/catalog/bookinstance/c1"

    def test_catalog_url(self):
        assert catalog_url() == "/catalog"
        assert catalog_url("genres") == "/catalog/genres"


class TestDates:
    """Test date formatting"""

    @pytest.mark.parametrize("day,expected", [
        (1, "1st Mar 2024"),
        (2, "2nd Mar 2024"),
        (3, "3rd Mar 2024"),
        (4, "4th Mar 2024"),
        (11, "11th Mar 2024"),
        (12, "12th Mar 2024"),
        (13, "13th Mar 2024"),
        (21, "21st Mar 2024"),
        (22, "22nd Mar 2024"),
        (31, "31st Mar 2024"),
    ])
    def test_view_date_ordinals(self, day, expected):
        assert format_view_date(date(2024, 3, day)) == expected

    def test_due_back_view(self):
        instance = BookInstance(id="c1", book="b1", imprint="i", due_back=datetime(2024, 3, 1, tzinfo=timezone.utc))

        assert due_back_view(instance) == "1st Mar 2024"

    def test_edit_date(self):
        assert format_edit_date(date(2024, 3, 1)) == "2024-03-01"
        assert format_edit_date(datetime(2024, 3, 1, 12, 0)) == "2024-03-01"
        assert format_edit_date(None) == ""

    def test_edit_date_keeps_rejected_input(self):
        assert format_edit_date("next week") == "next week"

    def test_bookinstance_form_values(self):
        instance = BookInstance(
            id="c1",
            book="b1",
            imprint="Harper",
            status=BookInstanceStatus.LOANED,
            due_back=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )

        assert bookinstance_form_values(instance) == {
            "book": "b1",
            "imprint": "Harper",
            "status": "Loaned",
            "due_back": "2024-03-01",
        }


class TestGenreChoices:
    """Test genre checkbox state"""

    def test_checked_iff_selected(self):
        genres = [Genre(id=genre_id, name=genre_id.upper()) for genre_id in ("a", "b", "c")]

        choices = genre_choices(genres, ["a", "c"])

        assert [(choice.id, choice.checked) for choice in choices] == [("a", True), ("b", False), ("c", True)]

    def test_nothing_selected(self):
        choices = genre_choices([Genre(id="a", name="A")], [])

        assert not choices[0].checked

    def test_recomputed_for_each_selection(self):
        """Checked state never leaks between renders"""
        genres = [Genre(id="a", name="A"), Genre(id="b", name="B")]

        genre_choices(genres, ["a"])
        choices = genre_choices(genres, ["b"])

        assert [choice.checked for choice in choices] == [False, True]
