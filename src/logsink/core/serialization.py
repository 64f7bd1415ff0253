"""JSON rendering of event properties.

Two entry points feed the insert builder:
- `extract_scalar_or_json`: one property → raw scalar (type preserved) or JSON text
- `serialize_properties_to_json`: the whole mapping → one JSON object document

Composite values are rendered compactly (`[1,2]`, `{"a":1}`); the top-level
document puts each property on its own line. An empty mapping renders as ""
rather than "{}", which is what gets stored for events without properties.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from io import StringIO
from typing import Any, TextIO

from logsink.core.values import Properties, PropertyValue, PropertyValues

TYPE_TAG_NAME = "_typeTag"


def write_quoted_json_string(text: str, out: TextIO) -> None:
    """Write `text` as a JSON string literal (standard escapes, non-ASCII kept)."""
    out.write(json.dumps(text, ensure_ascii=False))


def _write_scalar(value: Any, out: TextIO) -> None:
    if value is None:
        out.write("null")
    elif isinstance(value, bool):
        out.write("true" if value else "false")
    elif isinstance(value, Enum):
        write_quoted_json_string(str(value.name), out)
    elif isinstance(value, int):
        out.write(str(value))
    elif isinstance(value, float):
        if math.isfinite(value):
            out.write(repr(value))
        elif math.isnan(value):
            out.write('"NaN"')
        else:
            out.write('"Infinity"' if value > 0 else '"-Infinity"')
    elif isinstance(value, Decimal):
        if value.is_finite():
            out.write(str(value))
        else:
            write_quoted_json_string(str(value), out)
    elif isinstance(value, (datetime, date, time)):
        write_quoted_json_string(value.isoformat(), out)
    else:
        write_quoted_json_string(str(value), out)


def _key_text(key: PropertyValues.Scalar) -> str:
    if key.value is None:
        return "null"
    if isinstance(key.value, bool):
        return "true" if key.value else "false"
    return str(key.value)


def write_json_value(value: PropertyValue, out: TextIO) -> None:
    """Render one property value as compact JSON into `out`."""
    match value:
        case PropertyValues.Scalar():
            _write_scalar(value.value, out)
        case PropertyValues.Sequence():
            out.write("[")
            for i, element in enumerate(value.elements):
                if i > 0:
                    out.write(",")
                write_json_value(element, out)
            out.write("]")
        case PropertyValues.Structure():
            out.write("{")
            sep = ""
            for name, element in value.properties:
                out.write(sep)
                write_quoted_json_string(name, out)
                out.write(":")
                write_json_value(element, out)
                sep = ","
            if value.type_tag is not None:
                out.write(sep)
                write_quoted_json_string(TYPE_TAG_NAME, out)
                out.write(":")
                write_quoted_json_string(value.type_tag, out)
            out.write("}")
        case PropertyValues.Dictionary():
            out.write("{")
            for i, (key, element) in enumerate(value.elements):
                if i > 0:
                    out.write(",")
                write_quoted_json_string(_key_text(key), out)
                out.write(":")
                write_json_value(element, out)
            out.write("}")
        case _:
            raise TypeError(f"Unsupported property value: {type(value).__name__}")


def format_json_value(value: PropertyValue) -> str:
    """Return the compact JSON text of one property value."""
    out = StringIO()
    write_json_value(value, out)
    return out.getvalue()


def extract_scalar_or_json(properties: Properties, name: str) -> Any:
    """Value bound for an additional column sourced from property `name`.

    Returns None when the property is absent, the raw scalar when it is a
    scalar, and compact JSON text for composite values.
    """
    value = properties.get(name)
    if value is None:
        return None
    if isinstance(value, PropertyValues.Scalar):
        return value.value
    return format_json_value(value)


def serialize_properties_to_json(properties: Properties) -> str:
    """Render the whole property mapping as one JSON object ("" when empty)."""
    if len(properties) < 1:
        return ""

    out = StringIO()
    out.write("{")
    for i, (name, value) in enumerate(properties.items()):
        if i > 0:
            out.write(",")
        out.write("\n")
        write_quoted_json_string(name, out)
        out.write(": ")
        write_json_value(value, out)
    out.write("\n}")
    return out.getvalue()
