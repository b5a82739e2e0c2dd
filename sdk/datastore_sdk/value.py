"""
Structured value codec for the data store protocol.

A Value is the tagged wire form of one datum. Scalars carry exactly one
slot (string, number, boolean or enumeration); arrays, objects and
references carry an ordered tuple of named child Values instead:
- object/reference children are named by their key
- array children are named by their decimal index

Example:
    >>> v = encode(ValueKind.OBJECT, {"title": "Launch", "tags": ["a", "b"]})
    >>> decode(v)
    {'title': 'Launch', 'tags': ['a', 'b']}

Invariants:
    - A container Value never populates a scalar slot
    - A scalar Value never has children
    - Values are immutable once built
    - Unknown native types are encoded as strings
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ResponseDecodeError, ValueCodecError
from .schema import ValueKind

_SCALAR_SLOTS = ("string", "number", "boolean", "enumeration")
_SLOT_FOR_KIND = {
    ValueKind.STRING: "string",
    ValueKind.NUMBER: "number",
    ValueKind.BOOLEAN: "boolean",
    ValueKind.ENUMERATION: "enumeration",
}


@dataclass(frozen=True)
class Value:
    """One datum in the wire format.

    Attributes:
        kind: Type tag
        name: Object key or array index of this value inside its parent
        string: Slot for STRING values
        number: Slot for NUMBER values
        boolean: Slot for BOOLEAN values
        enumeration: Slot for ENUMERATION values
        children: Child values of ARRAY, OBJECT and REFERENCE values
        nullable: Nullability flag passed through from the wire
    """

    kind: ValueKind
    name: str | None = None
    string: str | None = None
    number: int | float | None = None
    boolean: bool | None = None
    enumeration: int | None = None
    children: tuple[Value, ...] = ()
    nullable: bool | None = None

    def __post_init__(self) -> None:
        """Validate the scalar/container split."""
        kind = ValueKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "children", tuple(self.children))

        populated = [slot for slot in _SCALAR_SLOTS if getattr(self, slot) is not None]
        if kind.is_container and populated:
            raise ValueError(f"{kind.name} value cannot populate scalar slot(s) {populated}")
        if kind.is_scalar:
            if self.children:
                raise ValueError(f"{kind.name} value cannot have children")
            stray = [slot for slot in populated if slot != _SLOT_FOR_KIND[kind]]
            if stray:
                raise ValueError(f"{kind.name} value cannot populate slot(s) {stray}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire shape.

        Both "object" and "array" are always present; only the one that
        matches the kind is non-empty.
        """
        result: dict[str, Any] = {"type": int(self.kind)}
        if self.name is not None:
            result["name"] = self.name
        for slot in _SCALAR_SLOTS:
            slot_value = getattr(self, slot)
            if slot_value is not None:
                result[slot] = slot_value

        children = [child.to_dict() for child in self.children]
        result["object"] = children if self.kind in (ValueKind.OBJECT, ValueKind.REFERENCE) else []
        result["array"] = children if self.kind == ValueKind.ARRAY else []
        if self.nullable is not None:
            result["nullable"] = self.nullable
        return result

    @classmethod
    def from_dict(cls, data: Any, path: str = "value") -> Value:
        """Parse a Value from its JSON wire shape.

        Scalar slots sent on container values, and child lists sent on
        scalar values, are ignored.

        Raises:
            ResponseDecodeError: If the shape or type code is invalid
        """
        if not isinstance(data, dict):
            raise ResponseDecodeError(
                f"{path}: expected object, got {type(data).__name__}", path=path
            )

        code = data.get("type")
        if isinstance(code, bool) or not isinstance(code, int):
            raise ResponseDecodeError(f"{path}.type: missing or not an integer", path=path)
        try:
            kind = ValueKind(code)
        except ValueError:
            raise ResponseDecodeError(f"{path}.type: unknown value type {code}", path=path) from None

        name = data.get("name")
        if name is not None and not isinstance(name, str):
            raise ResponseDecodeError(f"{path}.name: expected string", path=path)

        nullable = data.get("nullable")
        if nullable is not None and not isinstance(nullable, bool):
            raise ResponseDecodeError(f"{path}.nullable: expected boolean", path=path)

        if kind.is_container:
            key = "array" if kind == ValueKind.ARRAY else "object"
            raw_children = data.get(key)
            if raw_children is None:
                raw_children = []
            if not isinstance(raw_children, list):
                raise ResponseDecodeError(f"{path}.{key}: expected list", path=path)
            children = tuple(
                cls.from_dict(child, f"{path}.{key}[{i}]") for i, child in enumerate(raw_children)
            )
            return cls(kind=kind, name=name, children=children, nullable=nullable)

        slot = _SLOT_FOR_KIND[kind]
        return cls(
            kind=kind,
            name=name,
            nullable=nullable,
            **{slot: _read_slot(kind, data.get(slot), f"{path}.{slot}")},
        )


def _read_slot(kind: ValueKind, raw: Any, path: str) -> Any:
    """Type-check a scalar slot read from the wire."""
    if raw is None:
        return None

    if kind == ValueKind.STRING:
        if not isinstance(raw, str):
            raise ResponseDecodeError(f"{path}: expected string", path=path)
        return raw

    if kind == ValueKind.BOOLEAN:
        if not isinstance(raw, bool):
            raise ResponseDecodeError(f"{path}: expected boolean", path=path)
        return raw

    if kind == ValueKind.NUMBER:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or _non_finite(raw):
            raise ResponseDecodeError(f"{path}: expected finite number", path=path)
        return raw

    # int64 enumerations may arrive as JSON strings
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            raise ResponseDecodeError(f"{path}: expected integer", path=path) from None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or _non_finite(raw):
        raise ResponseDecodeError(f"{path}: expected integer", path=path)
    return int(raw)


def _non_finite(raw: int | float) -> bool:
    # NaN and +-Infinity are valid Python JSON but not valid wire numbers
    return isinstance(raw, float) and not math.isfinite(raw)


def infer_kind(native: Any) -> ValueKind:
    """Pick the kind used to encode a native value.

    Anything that is not a string, boolean, number, list/tuple or
    mapping is encoded as a string.
    """
    if isinstance(native, str):
        return ValueKind.STRING
    # bool before int: bool is an int subclass
    if isinstance(native, bool):
        return ValueKind.BOOLEAN
    if isinstance(native, (int, float)):
        return ValueKind.NUMBER
    if isinstance(native, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(native, Mapping):
        return ValueKind.OBJECT
    return ValueKind.STRING


def encode(kind: ValueKind | int, native: Any, name: str | None = None) -> Value:
    """Encode a native value as a Value of the given kind.

    Args:
        kind: Desired kind
        native: Native value to encode
        name: Key or index of the value inside its parent

    Returns:
        Freshly built Value

    Raises:
        ValueCodecError: If native cannot be coerced to a NUMBER or
            ENUMERATION
    """
    kind = ValueKind(kind)

    if kind == ValueKind.STRING:
        return Value(kind=kind, name=name, string=_to_string(native))
    if kind == ValueKind.NUMBER:
        return Value(kind=kind, name=name, number=_to_number(native, kind))
    if kind == ValueKind.BOOLEAN:
        return Value(kind=kind, name=name, boolean=bool(native))
    if kind == ValueKind.ENUMERATION:
        return Value(kind=kind, name=name, enumeration=int(_to_number(native, kind)))
    if kind == ValueKind.ARRAY:
        return Value(kind=kind, name=name, children=_encode_array(native))
    # OBJECT and REFERENCE share one representation
    return Value(kind=kind, name=name, children=_encode_object(native))


def value_of(native: Any, name: str | None = None) -> Value:
    """Encode a native value using its inferred kind."""
    return encode(infer_kind(native), native, name)


def _encode_array(native: Any) -> tuple[Value, ...]:
    if not isinstance(native, (list, tuple)):
        return ()
    return tuple(value_of(item, str(i)) for i, item in enumerate(native))


def _encode_object(native: Any) -> tuple[Value, ...]:
    if not isinstance(native, Mapping):
        return ()
    return tuple(value_of(member, str(key)) for key, member in native.items())


def _to_string(native: Any) -> str:
    if native is None:
        return "null"
    if isinstance(native, bool):
        return "true" if native else "false"
    return str(native)


def _to_number(native: Any, kind: ValueKind) -> int | float:
    number = _coerce_number(native, kind)
    if isinstance(number, float) and not math.isfinite(number):
        raise ValueCodecError(
            f"Cannot encode non-finite {native!r} as {kind.name.lower()}", kind=kind.name.lower()
        )
    return number


def _coerce_number(native: Any, kind: ValueKind) -> int | float:
    if isinstance(native, Enum):
        native = native.value
    if isinstance(native, bool):
        return int(native)
    if isinstance(native, (int, float)):
        return native
    if native is None:
        return 0
    if isinstance(native, str):
        text = native.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise ValueCodecError(
                f"Cannot coerce {native!r} to {kind.name.lower()}", kind=kind.name.lower()
            ) from None
    raise ValueCodecError(
        f"Cannot coerce {type(native).__name__} to {kind.name.lower()}", kind=kind.name.lower()
    )


def decode(value: Value, kind: ValueKind | int | None = None) -> Any:
    """Decode a Value back into a native value.

    Args:
        value: Value to decode
        kind: Kind to decode as (defaults to the value's own kind)

    Returns:
        str, int/float, bool, list or dict
    """
    kind = value.kind if kind is None else ValueKind(kind)

    if kind == ValueKind.STRING:
        return value.string if value.string is not None else ""
    if kind == ValueKind.NUMBER:
        return value.number if value.number is not None else 0
    if kind == ValueKind.BOOLEAN:
        return bool(value.boolean) if value.boolean is not None else False
    if kind == ValueKind.ENUMERATION:
        return int(value.enumeration) if value.enumeration is not None else 0
    if kind == ValueKind.ARRAY:
        return decode_array(value.children)
    return decode_object(value.children)


def decode_array(children: tuple[Value, ...] | list[Value]) -> list[Any]:
    """Decode array children in index order.

    Children are ordered by their name parsed as an integer. Children
    without a numeric name keep their wire order and follow the indexed
    ones.
    """
    ordered = sorted(enumerate(children), key=_array_position)
    return [decode(child) for _, child in ordered]


def decode_object(children: tuple[Value, ...] | list[Value]) -> dict[str, Any]:
    """Decode object children into a dict; unnamed children are dropped."""
    return {child.name: decode(child) for child in children if child.name}


def _array_position(item: tuple[int, Value]) -> tuple[int, int]:
    position, child = item
    if child.name is not None:
        try:
            return (0, int(child.name))
        except ValueError:
            pass
    return (1, position)
