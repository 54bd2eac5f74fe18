"""
Unit tests for the form validation pipeline.

Tests sanitizers, predicates and the rule interpreter: error
accumulation, write-back of sanitized values, optional rules,
conversions and async predicates.
"""

from datetime import date, datetime, timezone

import pytest
from starlette.datastructures import FormData

from catalog.src.services.validation import (
    AsyncFieldRule,
    FieldRule,
    escape,
    is_alphanumeric,
    is_iso8601,
    not_empty,
    one_of,
    run_pipeline,
    to_date,
    to_datetime,
    trim,
)


# ============================================================================
# SANITIZERS AND PREDICATES
# ============================================================================


class TestSanitizers:
    """Test trim, escape and date conversion"""

    def test_trim(self):
        assert trim("  Ursula  ") == "Ursula"
        assert trim(None) is None

    def test_escape_html_characters(self):
        """Markup characters are replaced by entities"""
        assert escape("<b>\"Tom\" & 'Jerry'</b>") == (
            "&lt;b&gt;&quot;Tom&quot; &amp; &#x27;Jerry&#x27;&lt;&#x2F;b&gt;"
        )

    def test_escape_backslash_and_backtick(self):
        assert escape("a\\b`c") == "a&#x5C;b&#96;c"

    def test_escape_leaves_plain_text(self):
        assert escape("Le Guin") == "Le Guin"

    def test_to_date(self):
        assert to_date("1929-10-21") == date(1929, 10, 21)

    def test_to_datetime_defaults_to_utc(self):
        assert to_datetime("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_to_datetime_accepts_zulu_suffix(self):
        assert to_datetime("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)

    def test_to_datetime_converts_offset_to_utc(self):
        assert to_datetime("2024-03-01T10:30:00+02:00") == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


class TestPredicates:
    """Test the field predicates"""

    @pytest.mark.parametrize("value,expected", [
        ("Ursula", True),
        ("R2D2", True),
        ("Le Guin", False),
        ("O'Brien", False),
        ("Zoë", False),
        ("", False),
    ])
    def test_is_alphanumeric(self, value, expected):
        assert is_alphanumeric(value) is expected

    @pytest.mark.parametrize("value,expected", [
        ("2024-03-01", True),
        ("2024-03-01T10:30:00", True),
        ("2024-03-01T10:30:00Z", True),
        ("01/03/2024", False),
        ("2024-13-01", False),
        ("soon", False),
        ("9999-12-31T23:00:00-05:00", False),
    ])
    def test_is_iso8601(self, value, expected):
        assert is_iso8601(value) is expected

    def test_not_empty(self):
        assert not_empty("x")
        assert not not_empty("")

    def test_one_of(self):
        check = one_of(["Available", "Loaned"])
        assert check("Loaned")
        assert not check("Lost")


# ============================================================================
# INTERPRETER
# ============================================================================


class TestRunPipeline:
    """Test run_pipeline()"""

    @pytest.mark.asyncio
    async def test_errors_accumulate_across_fields(self):
        """A failing rule never stops the rules after it"""
        rules = [
            FieldRule("a", (trim,), not_empty, "A is required"),
            FieldRule("b", (trim,), not_empty, "B is required"),
        ]

        result = await run_pipeline(rules, {"a": " ", "b": ""})

        assert not result.is_valid
        assert result.fields_in_error() == ["a", "b"]
        assert [error.message for error in result.errors] == ["A is required", "B is required"]

    @pytest.mark.asyncio
    async def test_sanitized_values_written_back(self):
        """Later rules on the same field see the sanitized value"""
        seen = []

        def record(value):
            seen.append(value)
            return True

        rules = [
            FieldRule("name", (trim, escape), not_empty),
            FieldRule("name", check=record),
        ]

        result = await run_pipeline(rules, {"name": "  Tom & Jerry "})

        assert result.values["name"] == "Tom &amp; Jerry"
        assert seen == ["Tom &amp; Jerry"]

    @pytest.mark.asyncio
    async def test_missing_field_reads_as_empty_string(self):
        result = await run_pipeline([FieldRule("title", (trim,), not_empty, "Title is required")], {})

        assert result.values["title"] == ""
        assert result.fields_in_error() == ["title"]

    @pytest.mark.asyncio
    async def test_optional_rule_skips_empty_value(self):
        """Only the required rule reports a missing value"""
        rules = [
            FieldRule("name", (trim,), not_empty, "Name is required"),
            FieldRule("name", check=is_alphanumeric, message="Name is not alphanumeric", optional=True),
        ]

        result = await run_pipeline(rules, {"name": "   "})

        assert [error.message for error in result.errors] == ["Name is required"]

    @pytest.mark.asyncio
    async def test_convert_runs_only_after_passing_check(self):
        rules = [FieldRule("born", (trim,), is_iso8601, "Invalid date", optional=True, convert=to_date)]

        valid = await run_pipeline(rules, {"born": " 1929-10-21 "})
        invalid = await run_pipeline(rules, {"born": "someday"})
        empty = await run_pipeline(rules, {"born": ""})

        assert valid.values["born"] == date(1929, 10, 21)
        assert invalid.values["born"] == "someday"
        assert invalid.errors[0].value == "someday"
        assert empty.is_valid
        assert empty.values["born"] == ""

    @pytest.mark.asyncio
    async def test_message_producer_receives_context(self):
        rules = [
            FieldRule(
                "status",
                check=one_of(["Available"]),
                message=lambda value, context: f"{value} not in {context['statuses']}",
            )
        ]

        result = await run_pipeline(rules, {"status": "Lost"}, context={"statuses": ["Available"]})

        assert result.errors[0].message == "Lost not in ['Available']"

    @pytest.mark.asyncio
    async def test_multi_valued_field_from_form_data(self):
        """Every submitted value of a repeated field is kept and transformed"""
        form = FormData([("genre", "a<b"), ("genre", "c")])

        result = await run_pipeline([FieldRule("genre", (escape,), many=True)], form)

        assert result.values["genre"] == ["a&lt;b", "c"]

    @pytest.mark.asyncio
    async def test_multi_valued_field_absent_is_empty_list(self):
        result = await run_pipeline([FieldRule("genre", (escape,), many=True)], FormData([]))

        assert result.values["genre"] == []
        assert result.is_valid

    @pytest.mark.asyncio
    async def test_multi_valued_field_single_value_from_mapping(self):
        result = await run_pipeline([FieldRule("genre", many=True)], {"genre": "only"})

        assert result.values["genre"] == ["only"]

    @pytest.mark.asyncio
    async def test_async_rule_sees_sanitized_value_and_context(self):
        calls = []

        async def is_free(value, context):
            calls.append((value, context["genre_id"]))
            return False

        rules = [
            FieldRule("name", (trim,), not_empty, "Name is required"),
            AsyncFieldRule("name", is_free, "Name taken", optional=True),
        ]

        result = await run_pipeline(rules, {"name": " Poetry "}, context={"genre_id": "g1"})

        assert calls == [("Poetry", "g1")]
        assert [error.message for error in result.errors] == ["Name taken"]

    @pytest.mark.asyncio
    async def test_optional_async_rule_skipped_for_empty_value(self):
        async def never(value, context):
            raise AssertionError("should not be called")

        rules = [
            FieldRule("name", (trim,), not_empty, "Name is required"),
            AsyncFieldRule("name", never, "Name taken", optional=True),
        ]

        result = await run_pipeline(rules, {"name": ""})

        assert result.fields_in_error() == ["name"]
