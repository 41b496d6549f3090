# =============================================================================
# shoply_core/data/query.py
# Query Predicates and Canonical Cache Keys
# =============================================================================
"""
Structured query predicates for the document store.

    query("subscriptions", [
        where("user_id", "==", uid),
        where("status", "==", "active"),
        order_by("created_at", "desc"),
        limit(1),
    ])

``canonical_key`` turns a predicate list into a string that is identical for
logically equal queries: filters are commutative so they are sorted, while
ordering clauses keep their declared sequence because it changes the result.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains")
DIRECTIONS = ("asc", "desc")

# Operators whose value is a set of candidates; member order is irrelevant
SET_OPERATORS = ("in", "not-in")


@dataclass(frozen=True)
class Where:
    """Filter clause: ``field <op> value``."""
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    """Sort clause."""
    field: str
    direction: str = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class Limit:
    """Maximum number of documents to return."""
    count: int


Predicate = Union[Where, OrderBy, Limit]


def where(field: str, op: str, value: Any) -> Where:
    if op not in OPERATORS:
        raise ValueError(f"Unsupported operator {op!r}; expected one of {OPERATORS}")
    if op in SET_OPERATORS and not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"Operator {op!r} needs a list of values")
    return Where(field, op, value)


def order_by(field: str, direction: str = "asc") -> OrderBy:
    if direction not in DIRECTIONS:
        raise ValueError(f"Unsupported direction {direction!r}; expected 'asc' or 'desc'")
    return OrderBy(field, direction)


def limit(count: int) -> Limit:
    if count < 1:
        raise ValueError("limit must be at least 1")
    return Limit(count)


def split_predicates(
    predicates: Iterable[Predicate],
) -> Tuple[List[Where], List[OrderBy], Optional[int]]:
    """Separate a predicate list into filters, sort clauses and the limit."""
    filters: List[Where] = []
    orders: List[OrderBy] = []
    max_count: Optional[int] = None

    for predicate in predicates:
        if isinstance(predicate, Where):
            filters.append(predicate)
        elif isinstance(predicate, OrderBy):
            orders.append(predicate)
        elif isinstance(predicate, Limit):
            max_count = predicate.count
        else:
            raise TypeError(f"Unknown predicate: {predicate!r}")

    return filters, orders, max_count


def _encode_value(op: str, value: Any) -> str:
    if op in SET_OPERATORS:
        members = sorted(json.dumps(v, sort_keys=True, default=str) for v in value)
        return "[" + ",".join(members) + "]"
    return json.dumps(value, sort_keys=True, default=str)


def canonical_key(predicates: Sequence[Predicate]) -> str:
    """
    Order-independent key for a predicate list.

    Returns:
        String such as
        ``where(status,==,"active");where(user_id,==,"u1")|order(created_at,desc)|limit(1)``
    """
    filters, orders, max_count = split_predicates(predicates)

    triples = sorted(
        {(f.field, f.op, _encode_value(f.op, f.value)) for f in filters}
    )
    parts = [";".join(f"where({field},{op},{value})" for field, op, value in triples)]
    parts.append(";".join(f"order({o.field},{o.direction})" for o in orders))
    parts.append(f"limit({max_count})" if max_count is not None else "")

    return "|".join(parts)
