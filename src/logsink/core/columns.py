"""Additional destination columns sourced from event properties.

This module exposes:
- `ColumnConfig` → one extra column (name, SQL type, source property)
- `ColumnsConfig.add_column_for_property(...)` → fluent builder
- `ColumnsConfig.create_columns()` → frozen, ordered tuple handed to the sink
"""

from __future__ import annotations

from dataclasses import dataclass

from logsink.constants import DEFAULT_COLUMN_TYPE


@dataclass(frozen=True)
class ColumnConfig:
    """One additional column, filled from property `property` of each event.

    `name` and `type` are written into the generated SQL verbatim. They come
    from operator configuration and are trusted; nothing here escapes or
    sanitizes them, so a malformed type surfaces as a SQL error from the engine.
    """

    name: str
    type: str
    property: str


class ColumnsConfig:
    def __init__(self) -> None:
        self._cols: list[ColumnConfig] = []

    def add_column_for_property(
        self,
        property: str,
        type: str | None = None,
        column_name: str | None = None,
    ) -> ColumnsConfig:
        """Declare a column for `property`; returns self for chaining."""
        if property is None or not property.strip():
            raise ValueError("property must be a non-empty name")

        if type is None or not type.strip():
            type = DEFAULT_COLUMN_TYPE
        if column_name is None or not column_name.strip():
            column_name = property

        self._cols.append(ColumnConfig(name=column_name, type=type, property=property))
        return self

    def create_columns(self) -> tuple[ColumnConfig, ...]:
        return tuple(self._cols)

    def __len__(self) -> int:
        return len(self._cols)


def parse_column_spec(spec: str) -> ColumnConfig:
    """Parse `Property[:TYPE[:ColumnName]]` (used by the CLI `--column` option)."""
    parts = spec.split(":", 2)
    prop = parts[0]
    type_ = parts[1] if len(parts) > 1 else None
    name = parts[2] if len(parts) > 2 else None
    return ColumnsConfig().add_column_for_property(prop, type_, name).create_columns()[0]
