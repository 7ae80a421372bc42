"""
ZeekScope Query Executor
Filters, sorts and clamps a record sequence.
"""

import logging
import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Iterable

from zeekscope.filters import FilterDef, matches_all
from zeekscope.records import Record, is_number, resolve_field, to_text

logger = logging.getLogger("zeekscope.query")

DEFAULT_LIMIT = 100
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class QueryOptions:
    """Options for a single query: AND-ed filters, sort and limit."""
    filters: tuple[FilterDef, ...] = field(default_factory=tuple)
    sort_by: str = "ts"
    sort_order: str = "desc"
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        # Accept any iterable of filters but keep the stored value immutable
        object.__setattr__(self, "filters", tuple(self.filters))
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Invalid sort order: {self.sort_order!r} (expected 'asc' or 'desc')")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "filters": [f.to_dict() for f in self.filters],
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
            "limit": self.limit,
        }


def compare_values(a: Any, b: Any) -> int:
    """
    Ascending comparison of two present field values.

    Numbers compare numerically; anything else compares by its coerced
    string form. NaN compares equal to everything.
    """
    if is_number(a) and is_number(b):
        if (isinstance(a, float) and math.isnan(a)) or (isinstance(b, float) and math.isnan(b)):
            return 0
        return (a > b) - (a < b)
    left, right = to_text(a), to_text(b)
    return (left > right) - (left < right)


def sort_records(records: Iterable[Record], sort_by: str = "ts", sort_order: str = "desc") -> list[Record]:
    """
    Return a new list sorted on a resolved field.

    Records where the field is absent always come last, whatever the
    direction. The sort is stable.
    """
    descending = sort_order == "desc"

    def _cmp(a: Record, b: Record) -> int:
        a_val = resolve_field(a, sort_by)
        b_val = resolve_field(b, sort_by)

        if a_val is None and b_val is None:
            return 0
        if a_val is None:
            return 1
        if b_val is None:
            return -1

        cmp = compare_values(a_val, b_val)
        return -cmp if descending else cmp

    return sorted(records, key=cmp_to_key(_cmp))


def execute_query(records: Iterable[Record], options: QueryOptions, max_results: int) -> list[Record]:
    """
    Run a query over an already-loaded record sequence.

    Args:
        records: Records to search (not modified)
        options: Filters, sort and limit
        max_results: Ceiling the result count may never exceed

    Returns:
        Matching records, sorted and truncated
    """
    if options.filters:
        matched = [r for r in records if matches_all(r, options.filters)]
    else:
        matched = list(records)

    ordered = sort_records(matched, options.sort_by, options.sort_order)
    limit = max(0, min(options.limit, max_results))

    logger.debug(
        f"Query matched {len(matched)} records; returning {min(limit, len(ordered))} "
        f"(sort={options.sort_by} {options.sort_order}, limit={limit})"
    )
    return ordered[:limit]
