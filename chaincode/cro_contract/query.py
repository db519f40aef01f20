"""
Typed selector builder for ledger rich queries.

Selectors are built from (field, operator, value) conditions instead of
nested dictionaries, so conditions can be added conditionally without
reshaping anything. A selector serializes to the CouchDB Mango shape:

    {"selector": {"isoNumbers": {"$in": ["A123"]},
                  "createdAtUTC": {"$gte": 1000, "$lte": 2000}}}

and can also be evaluated in-process against a decoded document, which is
what the bundled ledgers do.

Invariants:
    - Selectors are immutable; where() returns a new selector
    - Serialization is deterministic (conditions keep insertion order)
    - Comparisons only hold between values of the same kind
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operator(Enum):
    """Supported selector operators."""

    EQ = "$eq"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"


@dataclass(frozen=True)
class Condition:
    """A single predicate on one document field."""

    field: str
    operator: Operator
    value: Any

    def __post_init__(self) -> None:
        if self.operator == Operator.IN and not isinstance(self.value, (list, tuple)):
            raise ValueError(f"$in on '{self.field}' requires a list value")

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate this condition against a decoded document."""
        if self.field not in document:
            return False
        actual = document[self.field]

        if self.operator == Operator.IN:
            candidates = list(self.value)
            # An array field matches if any of its elements is a candidate
            if isinstance(actual, list):
                return any(_same_kind_equal(item, c) for item in actual for c in candidates)
            return any(_same_kind_equal(actual, c) for c in candidates)

        if self.operator == Operator.EQ:
            return _same_kind_equal(actual, self.value)

        if not _comparable(actual, self.value):
            return False
        if self.operator == Operator.GT:
            return actual > self.value
        if self.operator == Operator.GTE:
            return actual >= self.value
        if self.operator == Operator.LT:
            return actual < self.value
        if self.operator == Operator.LTE:
            return actual <= self.value
        return False


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _comparable(a: Any, b: Any) -> bool:
    return _kind(a) == _kind(b) and _kind(a) in ("number", "string")


def _same_kind_equal(a: Any, b: Any) -> bool:
    return _kind(a) == _kind(b) and a == b


@dataclass(frozen=True)
class Selector:
    """An AND of conditions over document fields.

    Example:
        >>> selector = Selector().where("isoNumbers", Operator.IN, ["A123"])
        >>> selector = selector.where("createdAtUTC", Operator.GTE, 1000)
        >>> selector.to_json()
        '{"selector":{"isoNumbers":{"$in":["A123"]},"createdAtUTC":{"$gte":1000}}}'
    """

    conditions: tuple[Condition, ...] = field(default_factory=tuple)

    def where(self, field_name: str, operator: Operator, value: Any) -> Selector:
        """Return a new selector with one more condition."""
        if isinstance(value, tuple):
            value = list(value)
        return Selector(self.conditions + (Condition(field_name, operator, value),))

    def matches(self, document: dict[str, Any]) -> bool:
        """True if every condition holds for the document."""
        return all(c.matches(document) for c in self.conditions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the Mango query shape."""
        by_field: dict[str, dict[str, Any]] = {}
        for condition in self.conditions:
            by_field.setdefault(condition.field, {})[condition.operator.value] = condition.value
        return {"selector": by_field}

    def to_json(self) -> str:
        """Serialize to compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def __str__(self) -> str:
        return self.to_json()
