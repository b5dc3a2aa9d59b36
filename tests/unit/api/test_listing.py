"""Unit tests for list filtering and pagination."""

import pytest

from coursereg.api.listing import filter_records, paginate
from coursereg.registry import Course

COURSES = [
    Course(1, "Math", "Mr. Smith"),
    Course(2, "Physics", "Dr. Brown"),
    Course(3, "History", "Ms. Clark"),
    Course(4, "Mathematical Logic", "Dr. Smithers"),
]


@pytest.mark.unit
class TestFilterRecords:
    """Tests for filter_records."""

    def test_no_filters(self) -> None:
        assert filter_records(COURSES, {}) == COURSES

    def test_empty_values_ignored(self) -> None:
        assert filter_records(COURSES, {"title": None, "teacher": ""}) == COURSES

    def test_substring_case_insensitive(self) -> None:
        result = filter_records(COURSES, {"title": "MATH"})

        assert [c.id for c in result] == [1, 4]

    def test_exact_field(self) -> None:
        result = filter_records(COURSES, {"title": "math"}, exact=frozenset({"title"}))

        assert [c.id for c in result] == [1]

    def test_all_filters_must_match(self) -> None:
        result = filter_records(COURSES, {"title": "math", "teacher": "dr."})

        assert [c.id for c in result] == [4]

    def test_missing_field_matches_no_filter(self) -> None:
        records = [Course(1, None, "Mr. Smith")]

        assert filter_records(records, {"title": "non"}) == []


@pytest.mark.unit
class TestPaginate:
    """Tests for paginate."""

    def test_first_page(self) -> None:
        assert paginate(COURSES, page=1, limit=3) == COURSES[:3]

    def test_last_partial_page(self) -> None:
        assert paginate(COURSES, page=2, limit=3) == COURSES[3:]

    def test_past_the_end(self) -> None:
        assert paginate(COURSES, page=3, limit=3) == []
