"""
Form validation pipeline.

A form is described by an ordered list of rule descriptors. Each rule
names a field, the transforms that sanitize it, a predicate and the
message reported when the predicate fails. ``run_pipeline`` interprets
the list in order:

- every rule runs, a failing rule never stops the ones after it;
- transforms write back into the sanitized values, so later rules on
  the same field see the sanitized value;
- ``optional`` rules skip their predicate for empty values, which keeps
  a missing required field down to a single "required" error;
- ``AsyncFieldRule`` predicates may query the document store.

The result carries the sanitized values (used both to persist and to
re-render the form) and the accumulated errors.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from catalog.src.repositories.base import is_object_id

logger = structlog.get_logger(__name__)

Transform = Callable[[Any], Any]
Predicate = Callable[[Any], bool]
AsyncPredicate = Callable[[Any, Mapping[str, Any]], Awaitable[bool]]
Message = Union[str, Callable[[Any, Mapping[str, Any]], str]]


# ============================================================================
# Sanitizers
# ============================================================================

_ESCAPES = str.maketrans({
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
    "<": "&lt;",
    ">": "&gt;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
    "`": "&#96;",
})


def trim(value: Any) -> Any:
    """Strip surrounding whitespace from strings."""
    return value.strip() if isinstance(value, str) else value


def escape(value: Any) -> Any:
    """Replace HTML special characters with entities."""
    return value.translate(_ESCAPES) if isinstance(value, str) else value


def to_date(value: Any) -> Optional[date]:
    """Convert an ISO 8601 string to a calendar date."""
    if isinstance(value, date):
        return value.date() if isinstance(value, datetime) else value
    return _parse_iso8601(value).date()


def to_datetime(value: Any) -> Optional[datetime]:
    """Convert an ISO 8601 string to a UTC datetime."""
    parsed = value if isinstance(value, datetime) else _parse_iso8601(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# ============================================================================
# Predicates
# ============================================================================


def is_empty(value: Any) -> bool:
    """Empty strings, None and empty selections count as empty."""
    return value is None or value == "" or value == []


def not_empty(value: Any) -> bool:
    """At least one character."""
    return isinstance(value, str) and len(value) >= 1


def is_alphanumeric(value: Any) -> bool:
    """ASCII letters and digits only."""
    return isinstance(value, str) and value.isascii() and value.isalnum()


def is_iso8601(value: Any) -> bool:
    """A date or date-time in ISO 8601 notation."""
    if not isinstance(value, str):
        return False
    try:
        _parse_iso8601(value)
    except ValueError:
        return False
    return True


def is_identifier(value: Any) -> bool:
    """A well-formed document identifier."""
    return isinstance(value, str) and is_object_id(value)


def one_of(allowed: Iterable[str]) -> Predicate:
    """Membership in a fixed set of values."""
    choices = frozenset(allowed)

    def _check(value: Any) -> bool:
        return value in choices

    return _check


def _parse_iso8601(value: str) -> datetime:
    """Parse ISO 8601 text; values carrying an offset come back in UTC."""
    if not isinstance(value, str):
        raise ValueError(f"not a date string: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"date out of range in UTC: {value!r}") from e


# ============================================================================
# Rules and results
# ============================================================================


@dataclass(frozen=True)
class FieldRule:
    """One synchronous step of a form pipeline."""

    field: str
    transforms: Tuple[Transform, ...] = ()
    check: Optional[Predicate] = None
    message: Message = "Invalid value"
    optional: bool = False
    many: bool = False
    convert: Optional[Transform] = None


@dataclass(frozen=True)
class AsyncFieldRule:
    """A pipeline step whose predicate performs I/O."""

    field: str
    check: AsyncPredicate
    message: Message
    optional: bool = False


Rule = Union[FieldRule, AsyncFieldRule]


@dataclass(frozen=True)
class FieldError:
    """A failed rule, as shown next to the form."""

    field: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    """Sanitized values and accumulated errors of one pipeline run."""

    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def fields_in_error(self) -> List[str]:
        return [error.field for error in self.errors]


# ============================================================================
# Interpreter
# ============================================================================


def _read(form: Any, name: str, many: bool) -> Any:
    """Read one field from a form multi-dict or a plain mapping."""
    if many:
        if hasattr(form, "getlist"):
            return list(form.getlist(name))
        raw = form.get(name)
        if raw is None or raw == "":
            return []
        return list(raw) if isinstance(raw, (list, tuple)) else [raw]

    raw = form.get(name)
    return "" if raw is None else raw


def _render_message(message: Message, value: Any, context: Mapping[str, Any]) -> str:
    return message(value, context) if callable(message) else message


def _apply(transforms: Sequence[Transform], value: Any, many: bool) -> Any:
    for transform in transforms:
        value = [transform(item) for item in value] if many else transform(value)
    return value


async def run_pipeline(
    rules: Sequence[Rule],
    form: Any,
    context: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """
    Run every rule against a submitted form.

    Args:
        rules: Ordered rule descriptors
        form: Submitted fields (Starlette ``FormData`` or a mapping)
        context: Extra state for async predicates and message producers,
            e.g. the identifier being updated or the valid statuses

    Returns:
        ValidationResult with sanitized values and every error found
    """
    context = context or {}
    result = ValidationResult()

    for rule in rules:
        many = getattr(rule, "many", False)
        if rule.field in result.values:
            value = result.values[rule.field]
        else:
            value = _read(form, rule.field, many)

        if isinstance(rule, FieldRule):
            value = _apply(rule.transforms, value, many)
            result.values[rule.field] = value

            if rule.check is None or (rule.optional and is_empty(value)):
                continue

            if rule.check(value):
                if rule.convert is not None:
                    result.values[rule.field] = rule.convert(value)
            else:
                result.errors.append(
                    FieldError(rule.field, _render_message(rule.message, value, context), value)
                )
            continue

        result.values.setdefault(rule.field, value)
        if rule.optional and is_empty(value):
            continue
        if not await rule.check(value, context):
            result.errors.append(
                FieldError(rule.field, _render_message(rule.message, value, context), value)
            )

    if result.errors:
        logger.debug("form_validation_failed", fields=result.fields_in_error())
    return result
