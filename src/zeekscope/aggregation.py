"""
ZeekScope Aggregation Module
Group-by counts, sums, averages, unique counts and top-N over record fields.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from zeekscope.records import Record, is_number, resolve_field, to_text

UNSET_KEY = "(unset)"


@dataclass(frozen=True)
class GroupResult:
    """One bucket of a group-by."""
    key: str
    count: int
    percentage: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"key": self.key, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class AggregationResult:
    """Group-by result; total is the size of the whole input, not of the listed groups."""
    field: str
    total: int
    groups: list[GroupResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "field": self.field,
            "total": self.total,
            "groups": [g.to_dict() for g in self.groups],
        }


@dataclass(frozen=True)
class TopValue:
    """A value and how often it occurred."""
    value: str
    count: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"value": self.value, "count": self.count}


def _ranked(counts: dict[str, int], limit: int) -> list[tuple[str, int]]:
    """Sort by count descending, ties by first-seen order."""
    indexed = sorted(
        enumerate(counts.items()),
        key=lambda item: (-item[1][1], item[0]),
    )
    return [pair for _, pair in indexed[:max(0, limit)]]


def group_by(records: Sequence[Record], field_name: str, limit: int = 20) -> AggregationResult:
    """
    Count records per distinct value of a field.

    Args:
        records: Records to aggregate
        field_name: Field to group on; absent values land in "(unset)"
        limit: Number of groups to keep

    Returns:
        AggregationResult with groups sorted by count descending
    """
    counts: dict[str, int] = defaultdict(int)
    for record in records:
        value = resolve_field(record, field_name)
        key = UNSET_KEY if value is None else to_text(value)
        counts[key] += 1

    total = len(records)
    groups = [
        GroupResult(
            key=key,
            count=count,
            percentage=round(count / total * 100, 2) if total > 0 else 0,
        )
        for key, count in _ranked(counts, limit)
    ]
    return AggregationResult(field=field_name, total=total, groups=groups)


def _finite_values(records: Iterable[Record], field_name: str):
    for record in records:
        value = resolve_field(record, field_name)
        if is_number(value) and math.isfinite(value):
            yield value


def sum_field(records: Iterable[Record], field_name: str) -> float:
    """Sum a numeric field, skipping records where it is missing or not a finite number."""
    return sum(_finite_values(records, field_name))


def avg_field(records: Iterable[Record], field_name: str) -> float:
    """Average a numeric field; 0 when no record carries a finite number."""
    values = list(_finite_values(records, field_name))
    return sum(values) / len(values) if values else 0


def count_unique(records: Iterable[Record], field_name: str) -> int:
    """Number of distinct non-null values of a field."""
    values = set()
    for record in records:
        value = resolve_field(record, field_name)
        if value is not None:
            values.add(to_text(value))
    return len(values)


def top_n(records: Iterable[Record], field_name: str, n: int = 10) -> list[TopValue]:
    """Most frequent present values of a field."""
    counts: dict[str, int] = defaultdict(int)
    for record in records:
        value = resolve_field(record, field_name)
        if value is not None:
            key = to_text(value)
            counts[key] += 1

    return [TopValue(value=value, count=count) for value, count in _ranked(counts, n)]
