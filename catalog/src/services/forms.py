"""
Rule lists for the catalog forms.

Each function returns the ordered rules ``run_pipeline`` interprets for
one form. Messages are what the user sees next to the form.
"""

from typing import Any, List, Mapping

from catalog.src.models.entities import BookInstanceStatus
from catalog.src.repositories.genre_repo import GenreRepository
from catalog.src.services.validation import (
    AsyncFieldRule,
    FieldRule,
    Rule,
    escape,
    is_alphanumeric,
    is_identifier,
    is_iso8601,
    not_empty,
    one_of,
    to_date,
    to_datetime,
    trim,
)

NAME_MAX_LENGTH = 100


def _at_most(limit: int):
    def _check(value: Any) -> bool:
        return len(value) <= limit
    return _check


def author_rules() -> List[Rule]:
    return [
        FieldRule("first_name", (trim, escape), not_empty, "First name is required"),
        FieldRule(
            "first_name",
            check=is_alphanumeric,
            message="First name has non-alphanumeric characters.",
            optional=True,
        ),
        FieldRule(
            "first_name",
            check=_at_most(NAME_MAX_LENGTH),
            message=f"First name must be at most {NAME_MAX_LENGTH} characters.",
            optional=True,
        ),
        FieldRule("family_name", (trim, escape), not_empty, "Family name is required"),
        FieldRule(
            "family_name",
            check=is_alphanumeric,
            message="Family name has non-alphanumeric characters.",
            optional=True,
        ),
        FieldRule(
            "family_name",
            check=_at_most(NAME_MAX_LENGTH),
            message=f"Family name must be at most {NAME_MAX_LENGTH} characters.",
            optional=True,
        ),
        FieldRule(
            "date_of_birth", (trim,), is_iso8601, "Invalid date of birth",
            optional=True, convert=to_date,
        ),
        FieldRule(
            "date_of_death", (trim,), is_iso8601, "Invalid date of death",
            optional=True, convert=to_date,
        ),
    ]


def genre_rules() -> List[Rule]:
    return [
        FieldRule("name", (trim, escape), not_empty, "Genre name is required"),
        FieldRule(
            "name",
            check=_at_most(NAME_MAX_LENGTH),
            message=f"Genre name must be at most {NAME_MAX_LENGTH} characters.",
            optional=True,
        ),
    ]


def genre_update_rules(genres: GenreRepository) -> List[Rule]:
    """
    Genre rules plus the name uniqueness check used on update.

    The uniqueness predicate reads ``genre_id`` from the pipeline context
    so the genre being renamed does not conflict with itself.
    """

    async def _name_is_free(value: Any, context: Mapping[str, Any]) -> bool:
        conflict = await genres.find_by_name(value, exclude_id=context.get("genre_id"))
        return conflict is None

    return genre_rules() + [
        AsyncFieldRule("name", _name_is_free, "Genre with this name already exists", optional=True),
    ]


def book_rules() -> List[Rule]:
    return [
        FieldRule("title", (trim, escape), not_empty, "Title is required"),
        FieldRule("author", (trim, escape), not_empty, "Author is required"),
        FieldRule("author", check=is_identifier, message="Author is not valid", optional=True),
        FieldRule("summary", (trim, escape), not_empty, "Summary is required"),
        FieldRule("isbn", (trim, escape), not_empty, "ISBN is required"),
        FieldRule("genre", (escape,), many=True),
    ]


def _status_message(value: Any, context: Mapping[str, Any]) -> str:
    statuses = context.get("statuses") or BookInstanceStatus.values()
    return f"Status is not valid, valid statuses: {', '.join(statuses)}"


def bookinstance_rules() -> List[Rule]:
    return [
        FieldRule("book", (trim, escape), not_empty, "Book is required"),
        FieldRule("book", check=is_identifier, message="Book is not valid", optional=True),
        FieldRule("imprint", (trim, escape), not_empty, "Imprint is required"),
        FieldRule(
            "due_back", (trim,), is_iso8601, "Invalid due date",
            optional=True, convert=to_datetime,
        ),
        FieldRule("status", (trim, escape), one_of(BookInstanceStatus.values()), _status_message),
    ]
