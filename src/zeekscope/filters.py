"""
ZeekScope Filter Evaluator
Decides whether a record satisfies a single filter predicate.

Features:
    - Loose equality (structural, then string-coerced)
    - Numeric comparisons that never coerce the record value
    - Case-insensitive substring and wildcard matching
    - IPv4 and IPv6 CIDR containment

Every predicate is total: missing fields, wrong types and malformed
addresses produce False (or True for neq) rather than raising.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from zeekscope.records import Record, is_number, resolve_field, to_text

logger = logging.getLogger("zeekscope.query")


class FilterOp(str, Enum):
    """Operators understood by the filter evaluator."""
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    WILDCARD = "wildcard"
    CIDR = "cidr"
    IN = "in"
    EXISTS = "exists"


@dataclass(frozen=True)
class FilterDef:
    """A single predicate over one record field."""
    field: str
    op: str
    value: Any = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        op = self.op.value if isinstance(self.op, FilterOp) else self.op
        return {"field": self.field, "op": op, "value": self.value}

    @classmethod
    def parse(cls, expr: str) -> "FilterDef":
        """
        Build a filter from a "field:op:value" expression.

        The value keeps any further colons (IPv6 addresses). "in" values
        are split on commas, numeric comparison values become floats or
        ints, and "exists" takes no value.

        Raises:
            ValueError: if the expression has no operator part
        """
        parts = expr.split(":", 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid filter expression: {expr!r} (expected field:op:value)")

        field_name, op = parts[0], parts[1].lower()
        raw = parts[2] if len(parts) == 3 else ""

        if op == FilterOp.EXISTS.value:
            return cls(field_name, op)
        if op == FilterOp.IN.value:
            return cls(field_name, op, [item.strip() for item in raw.split(",") if item.strip()])
        if op in (FilterOp.GT.value, FilterOp.GTE.value, FilterOp.LT.value, FilterOp.LTE.value):
            number = _to_number(raw)
            return cls(field_name, op, raw if number is None else number)
        return cls(field_name, op, raw)


def _to_number(raw: Any) -> float | int | None:
    """Numeric value of a filter operand, or None."""
    if is_number(raw):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            return None
    return None


def _strict_equal(a: Any, b: Any) -> bool:
    """Structural equality that keeps booleans apart from numbers."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def loose_equal(value: Any, expected: Any) -> bool:
    """Structural equality first, then string-coerced equality."""
    if value is None or expected is None:
        return value is None and expected is None
    return _strict_equal(value, expected) or to_text(value) == to_text(expected)


def matches(record: Record, flt: FilterDef) -> bool:
    """
    Check one record against one filter.

    Args:
        record: Record mapping
        flt: Filter definition

    Returns:
        True if the record satisfies the filter
    """
    value = resolve_field(record, flt.field)

    try:
        op = FilterOp(flt.op)
    except ValueError:
        logger.debug(f"Unknown filter operator {flt.op!r} on {flt.field}; ignoring")
        return True

    if op is FilterOp.EQ:
        return loose_equal(value, flt.value)
    if op is FilterOp.NEQ:
        return not loose_equal(value, flt.value)

    if op in (FilterOp.GT, FilterOp.GTE, FilterOp.LT, FilterOp.LTE):
        threshold = _to_number(flt.value)
        if not is_number(value) or threshold is None:
            return False
        if op is FilterOp.GT:
            return value > threshold
        if op is FilterOp.GTE:
            return value >= threshold
        if op is FilterOp.LT:
            return value < threshold
        return value <= threshold

    if op is FilterOp.CONTAINS:
        needle = to_text(flt.value)
        if isinstance(value, str):
            return match_partial(value, needle)
        if isinstance(value, (list, tuple)):
            return any(match_partial(to_text(item), needle) for item in value)
        return False

    if op is FilterOp.WILDCARD:
        return match_wildcard(to_text(value), to_text(flt.value))

    if op is FilterOp.CIDR:
        return match_cidr(to_text(value), to_text(flt.value))

    if op is FilterOp.IN:
        if not isinstance(flt.value, (list, tuple, set, frozenset)):
            return False
        return any(loose_equal(value, candidate) for candidate in flt.value)

    # FilterOp.EXISTS
    return value is not None


def matches_all(record: Record, filters) -> bool:
    """AND of every filter; stops at the first miss."""
    return all(matches(record, flt) for flt in filters)


def match_partial(value: str, search: str) -> bool:
    """Case-insensitive substring test."""
    return search.lower() in value.lower()


def match_wildcard(value: str, pattern: str) -> bool:
    """
    Match a value against a "*" wildcard pattern.

    "*" matches any run of characters; everything else is literal. The
    whole value must match, ignoring case. Without "*" this is a
    case-insensitive equality check.
    """
    if "*" not in pattern:
        return value.lower() == pattern.lower()

    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, value, re.IGNORECASE | re.DOTALL) is not None


def in_range(value: Any, minimum: float | None = None, maximum: float | None = None) -> bool:
    """True if value is a number within the optional inclusive bounds."""
    if not is_number(value) or (isinstance(value, float) and math.isnan(value)):
        return False
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def match_ip(record_ip: str, filter_ip: str) -> bool:
    """Exact address match, or CIDR containment when filter_ip has a prefix."""
    if "/" in filter_ip:
        return match_cidr(record_ip, filter_ip)
    return record_ip == filter_ip


def match_cidr(ip: str, cidr: str) -> bool:
    """
    Check whether an address falls inside a CIDR block.

    Without "/" the check is exact string equality. IPv6 is used when
    either side contains ":". Malformed input never raises.

    Args:
        ip: Address from the record
        cidr: "network/prefix" or a bare address

    Returns:
        True if ip is contained in cidr
    """
    if "/" not in cidr:
        return ip == cidr

    network, _, prefix_str = cidr.partition("/")
    if not prefix_str.isascii() or not prefix_str.isdigit():
        return False
    prefix = int(prefix_str)

    if ":" in ip or ":" in network:
        return _match_cidr6(ip, network, prefix)

    if prefix > 32:
        return False

    ip_num = ipv4_to_int(ip)
    net_num = ipv4_to_int(network)
    if ip_num is None or net_num is None:
        return False

    mask = 0 if prefix == 0 else (0xFFFFFFFF << (32 - prefix)) & 0xFFFFFFFF
    return (ip_num & mask) == (net_num & mask)


def ipv4_to_int(ip: str) -> int | None:
    """Pack a dotted-quad address into a 32-bit integer, or None."""
    parts = ip.split(".")
    if len(parts) != 4:
        return None

    num = 0
    for part in parts:
        if not part.isascii() or not part.isdigit():
            return None
        octet = int(part)
        if octet > 255:
            return None
        num = (num << 8) | octet
    return num


def ipv6_to_bytes(ip: str) -> list[int] | None:
    """Expand an IPv6 address to its 16 bytes, or None if malformed."""
    expanded = expand_ipv6(ip)
    if expanded is None:
        return None

    result: list[int] = []
    for group in expanded:
        value = int(group, 16)
        result.extend(((value >> 8) & 0xFF, value & 0xFF))
    return result


def expand_ipv6(ip: str) -> list[str] | None:
    """
    Expand a single "::" elision into eight 4-digit hex groups.

    Returns None for more than one "::", a wrong group count, or any
    group that is not 1-4 hex digits.
    """
    if ip.count("::") > 1:
        return None

    if "::" in ip:
        left, right = ip.split("::")
        left_groups = left.split(":") if left else []
        right_groups = right.split(":") if right else []
        missing = 8 - len(left_groups) - len(right_groups)
        if missing < 1:
            return None
        groups = left_groups + ["0"] * missing + right_groups
    else:
        groups = ip.split(":")

    if len(groups) != 8:
        return None
    for group in groups:
        if not 1 <= len(group) <= 4 or not all(c in "0123456789abcdefABCDEF" for c in group):
            return None
    return [group.rjust(4, "0").lower() for group in groups]


def _match_cidr6(ip: str, network: str, prefix: int) -> bool:
    if prefix > 128:
        return False

    ip_bytes = ipv6_to_bytes(ip)
    net_bytes = ipv6_to_bytes(network)
    if ip_bytes is None or net_bytes is None:
        return False

    remaining = prefix
    for ip_byte, net_byte in zip(ip_bytes, net_bytes):
        if remaining >= 8:
            if ip_byte != net_byte:
                return False
            remaining -= 8
        elif remaining > 0:
            mask = (0xFF << (8 - remaining)) & 0xFF
            return (ip_byte & mask) == (net_byte & mask)
        else:
            break
    return True
