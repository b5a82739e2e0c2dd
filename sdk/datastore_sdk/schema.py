"""
Wire enumerations for the data store protocol.

This module provides the closed sets of codes shared by the codec,
the query builders and the request model:
- ValueKind: Type tag of a Value
- SimpleSelector: Comparison operator of a simple filter
- MultiSelector: Boolean combinator of a multi filter
- Direction: Sort direction

Invariants:
    - Integer codes are part of the wire format and never change
    - New members may be appended, existing ones are never renumbered
"""

from __future__ import annotations

from enum import IntEnum


class ValueKind(IntEnum):
    """Type tag carried by every Value."""

    STRING = 1
    NUMBER = 2
    BOOLEAN = 3
    ENUMERATION = 100
    ARRAY = 101
    OBJECT = 102
    REFERENCE = 103

    @property
    def is_scalar(self) -> bool:
        """Whether values of this kind hold a scalar slot."""
        return self in _SCALAR_KINDS

    @property
    def is_container(self) -> bool:
        """Whether values of this kind hold child values."""
        return not self.is_scalar


_SCALAR_KINDS = frozenset(
    {ValueKind.STRING, ValueKind.NUMBER, ValueKind.BOOLEAN, ValueKind.ENUMERATION}
)


class SimpleSelector(IntEnum):
    """Comparison operators for simple filters."""

    EQUAL = 1
    NOT_EQUAL = 2
    SIMILAR = 3
    NOT_SIMILAR = 4
    MATCH = 5
    NOT_MATCH = 6
    GREATER = 7
    GREATER_OR_EQUAL = 8
    LESS = 9
    LESS_OR_EQUAL = 10
    IN = 11
    NOT_IN = 12
    NOT = 13
    EXISTS = 14
    NOT_EXISTS = 15


class MultiSelector(IntEnum):
    """Boolean combinators for multi filters."""

    AND = 1
    OR = 2
    NOR = 3
    ALL = 4
    ELEM_MATCH = 5
    SIZE = 6


class Direction(IntEnum):
    """Sort direction."""

    ASCENDING = 1
    DESCENDING = 2
