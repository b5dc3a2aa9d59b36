"""Filtering and pagination for list endpoints."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def filter_records(
    records: Sequence[T],
    filters: Mapping[str, str | None],
    exact: frozenset[str] = frozenset(),
) -> list[T]:
    """Keep records matching every given filter.

    Matching is case-insensitive: fields named in ``exact`` must be equal,
    other fields must contain the filter value. Empty filters are ignored.
    """
    active = {field: value.casefold() for field, value in filters.items() if value}

    def matches(record: T) -> bool:
        for field, wanted in active.items():
            value = getattr(record, field)
            actual = "" if value is None else str(value).casefold()
            if field in exact:
                if actual != wanted:
                    return False
            elif wanted not in actual:
                return False
        return True

    return [r for r in records if matches(r)]


def paginate(records: Sequence[T], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> list[T]:
    """Slice out one page; pages are numbered from 1."""
    start = (page - 1) * limit
    return list(records[start : start + limit])
