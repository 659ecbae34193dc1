"""Filter helpers shared by the list operations."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


def to_set(values: Iterable[str] | None) -> set[str]:
    """Collapse an optional filter list into a set."""
    return set(values or ())


def match_filter(allowed: set[str], value: str | None) -> bool:
    """Membership test where an empty filter matches everything."""
    if not allowed:
        return True
    return value in allowed


def filter_authorized(
    records: Iterable[T],
    authorized: set[str],
    key: Callable[[T], str],
) -> list[T]:
    """Keep only the records whose namespace the caller is authorized to see."""
    return [record for record in records if key(record) in authorized]
