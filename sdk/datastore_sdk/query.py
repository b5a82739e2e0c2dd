"""
Filter and sort construction for list queries.

This module provides:
- SimpleFilter / MultiFilter / Filter: Predicate structures
- Order / Sort: Ordered sort specifications
- FilterBuilder / SortBuilder: Fluent builders producing immutable snapshots

Example:
    >>> flt = (
    ...     FilterBuilder()
    ...     .equal("status", "open")
    ...     .greater("priority", 2)
    ...     .build()
    ... )
    >>> order = SortBuilder().descending("priority").ascending("title").build()

Invariants:
    - The empty Filter matches all records
    - Sort order is insertion order; earlier orders take precedence
    - Builders never validate and never raise
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .schema import Direction, MultiSelector, SimpleSelector
from .value import Value, value_of


@dataclass(frozen=True)
class SimpleFilter:
    """A single comparison against one field.

    Attributes:
        symbol: Comparison operator
        field: Field path the comparison applies to
        value: Literal to compare with (absent for exists-style operators)
    """

    symbol: SimpleSelector
    field: str
    value: Value | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"symbol": int(self.symbol), "field": self.field}
        if self.value is not None:
            result["value"] = self.value.to_dict()
        return result


@dataclass(frozen=True)
class MultiFilter:
    """Several simple filters combined under one boolean operator.

    Attributes:
        symbol: Combinator
        field: Optional field scope (e.g. the array for ELEM_MATCH)
        value: Combined simple filters
    """

    symbol: MultiSelector
    field: str | None = None
    value: tuple[SimpleFilter, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"symbol": int(self.symbol)}
        if self.field is not None:
            result["field"] = self.field
        result["value"] = [f.to_dict() for f in self.value]
        return result


@dataclass(frozen=True)
class Group:
    """Aggregation stage. Not produced by FilterBuilder."""

    symbol: int
    key_map: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"symbol": self.symbol, "keyMap": dict(self.key_map)}


@dataclass(frozen=True)
class Unwind:
    """Array unwind stage. Not produced by FilterBuilder."""

    field: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"field": self.field}


@dataclass(frozen=True)
class Filter:
    """Predicate for list queries.

    Attributes:
        simples: Simple comparisons
        multiples: Boolean combinations
        groups: Aggregation stages
        unwinds: Unwind stages
    """

    simples: tuple[SimpleFilter, ...] = ()
    multiples: tuple[MultiFilter, ...] = ()
    groups: tuple[Group, ...] = ()
    unwinds: tuple[Unwind, ...] = ()

    @classmethod
    def empty(cls) -> Filter:
        """Filter that matches every record."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """Whether this filter matches every record."""
        return not (self.simples or self.multiples or self.groups or self.unwinds)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "simples": [f.to_dict() for f in self.simples],
            "multiples": [f.to_dict() for f in self.multiples],
            "groups": [g.to_dict() for g in self.groups],
            "unwinds": [u.to_dict() for u in self.unwinds],
        }


@dataclass(frozen=True)
class Order:
    """One sort key."""

    symbol: Direction
    field: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"symbol": int(self.symbol), "field": self.field}


@dataclass(frozen=True)
class Sort:
    """Ordered sort keys, compared left to right."""

    orders: tuple[Order, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"orders": [o.to_dict() for o in self.orders]}


def _literal(value: Any) -> Value | None:
    if value is None or isinstance(value, Value):
        return value
    return value_of(value)


class FilterBuilder:
    """Fluent builder for Filter.

    Literals may be given as Value or as native values; natives are
    encoded with their inferred kind.

    Example:
        >>> flt = (
        ...     FilterBuilder()
        ...     .exists("owner")
        ...     .elem_match("tags", [SimpleFilter(SimpleSelector.EQUAL, "name", value_of("rpg"))])
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._simples: list[SimpleFilter] = []
        self._multiples: list[MultiFilter] = []

    def simple(
        self,
        field: str,
        selector: SimpleSelector,
        value: Any = None,
    ) -> FilterBuilder:
        """Add a simple comparison.

        Args:
            field: Field path
            selector: Comparison operator
            value: Literal (Value or native), or None

        Returns:
            Self for chaining
        """
        self._simples.append(SimpleFilter(symbol=selector, field=field, value=_literal(value)))
        return self

    def multiple(
        self,
        field: str | None,
        selector: MultiSelector,
        filters: list[SimpleFilter] | tuple[SimpleFilter, ...],
    ) -> FilterBuilder:
        """Add a boolean combination of simple filters.

        Args:
            field: Optional field scope
            selector: Combinator
            filters: Simple filters to combine

        Returns:
            Self for chaining
        """
        self._multiples.append(MultiFilter(symbol=selector, field=field, value=tuple(filters)))
        return self

    def equal(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.EQUAL, value)

    def not_equal(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.NOT_EQUAL, value)

    def greater(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.GREATER, value)

    def greater_or_equal(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.GREATER_OR_EQUAL, value)

    def less(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.LESS, value)

    def less_or_equal(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.LESS_OR_EQUAL, value)

    def in_(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.IN, value)

    def not_in(self, field: str, value: Any) -> FilterBuilder:
        return self.simple(field, SimpleSelector.NOT_IN, value)

    def exists(self, field: str) -> FilterBuilder:
        return self.simple(field, SimpleSelector.EXISTS)

    def not_exists(self, field: str) -> FilterBuilder:
        return self.simple(field, SimpleSelector.NOT_EXISTS)

    def and_(self, filters: list[SimpleFilter] | tuple[SimpleFilter, ...]) -> FilterBuilder:
        return self.multiple(None, MultiSelector.AND, filters)

    def or_(self, filters: list[SimpleFilter] | tuple[SimpleFilter, ...]) -> FilterBuilder:
        return self.multiple(None, MultiSelector.OR, filters)

    def elem_match(
        self,
        field: str,
        filters: list[SimpleFilter] | tuple[SimpleFilter, ...],
    ) -> FilterBuilder:
        """Match array elements of field that satisfy all filters."""
        return self.multiple(field, MultiSelector.ELEM_MATCH, filters)

    def build(self) -> Filter:
        """Snapshot the accumulated entries; later builder calls do not affect it."""
        return Filter(simples=tuple(self._simples), multiples=tuple(self._multiples))


class SortBuilder:
    """Fluent builder for Sort."""

    def __init__(self) -> None:
        self._orders: list[Order] = []

    def add(self, field: str, direction: Direction) -> SortBuilder:
        self._orders.append(Order(symbol=direction, field=field))
        return self

    def ascending(self, field: str) -> SortBuilder:
        return self.add(field, Direction.ASCENDING)

    def descending(self, field: str) -> SortBuilder:
        return self.add(field, Direction.DESCENDING)

    def build(self) -> Sort:
        return Sort(orders=tuple(self._orders))
