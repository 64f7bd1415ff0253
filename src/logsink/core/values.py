"""Property value variants attached to log events.

Every property value is one of four shapes:
- `PropertyValues.Scalar`     → a single primitive (str, number, bool, None, datetime…)
- `PropertyValues.Sequence`   → ordered elements
- `PropertyValues.Structure`  → named fields with an optional type tag
- `PropertyValues.Dictionary` → scalar keys mapped to values

`to_property_value` captures plain Python data into that shape.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class PropertyValues:
    @dataclass(frozen=True, slots=True)
    class Scalar:
        value: Any

    @dataclass(frozen=True, slots=True)
    class Sequence:
        elements: tuple[PropertyValue, ...] = ()

    @dataclass(frozen=True, slots=True)
    class Structure:
        properties: tuple[tuple[str, PropertyValue], ...] = ()
        type_tag: str | None = None

    @dataclass(frozen=True, slots=True)
    class Dictionary:
        elements: tuple[tuple[PropertyValues.Scalar, PropertyValue], ...] = ()


PropertyValue = (
    PropertyValues.Scalar
    | PropertyValues.Sequence
    | PropertyValues.Structure
    | PropertyValues.Dictionary
)

# Property name → value, insertion ordered.
Properties = Mapping[str, PropertyValue]


def is_scalar(value: PropertyValue) -> bool:
    return isinstance(value, PropertyValues.Scalar)


def to_property_value(obj: Any) -> PropertyValue:
    """Capture an arbitrary Python object as a property value.

    - existing variants are returned unchanged
    - mappings become `Dictionary` (keys captured as scalars)
    - lists, tuples, sets and frozensets become `Sequence`
    - dataclass instances become `Structure` tagged with the class name
    - anything else is a `Scalar`
    """
    if isinstance(obj, PropertyValue):
        return obj
    if isinstance(obj, Mapping):
        return PropertyValues.Dictionary(
            tuple((PropertyValues.Scalar(k), to_property_value(v)) for k, v in obj.items())
        )
    if isinstance(obj, (list, tuple, set, frozenset)):
        return PropertyValues.Sequence(tuple(to_property_value(v) for v in obj))
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        fields = tuple(
            (f.name, to_property_value(getattr(obj, f.name))) for f in dataclasses.fields(obj)
        )
        return PropertyValues.Structure(fields, type(obj).__name__)
    return PropertyValues.Scalar(obj)


def to_properties(values: Mapping[str, Any]) -> dict[str, PropertyValue]:
    """Capture a whole name → object mapping, preserving its order."""
    return {name: to_property_value(v) for name, v in values.items()}
