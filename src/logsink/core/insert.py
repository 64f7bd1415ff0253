"""Multi-row INSERT construction for one batch of events.

One statement per batch:

    INSERT INTO <table> (Timestamp, Level, Exception, Message, Properties[, extra…])
    VALUES (p0_1, p0_2, …),
    (p1_1, p1_2, …)

Placeholder names only need to be unique within the batch; they are built
from the event position and the column slot (1-based).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timezone
from typing import Any

from logsink.core.columns import ColumnConfig
from logsink.core.dialects import SqlDialect
from logsink.core.models import FormatProvider, LogEvent
from logsink.core.serialization import extract_scalar_or_json, serialize_properties_to_json

FIXED_COLUMNS: tuple[str, ...] = ("Timestamp", "Level", "Exception", "Message", "Properties")


@dataclass(slots=True)
class InsertStatement:
    """SQL text plus its bindings; `params` keeps positional (insertion) order."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)
    rows: int = 0


def _param_name(i: int, j: int) -> str:
    return f"p{i}_{j}"


def event_row(
    event: LogEvent,
    columns: Sequence[ColumnConfig],
    *,
    store_timestamp_in_utc: bool = False,
    format_provider: FormatProvider | None = None,
) -> list[Any]:
    """Values bound for one event, in insert column order."""
    timestamp = event.timestamp.astimezone(timezone.utc) if store_timestamp_in_utc else event.timestamp
    row: list[Any] = [
        timestamp,
        event.level.name,
        event.exception_text() or "",
        event.render_message(format_provider),
        serialize_properties_to_json(event.properties),
    ]
    row.extend(extract_scalar_or_json(event.properties, col.property) for col in columns)
    return row


def build_insert_statement(
    table: str,
    columns: Sequence[ColumnConfig],
    events: Sequence[LogEvent],
    *,
    dialect: SqlDialect,
    store_timestamp_in_utc: bool = False,
    format_provider: FormatProvider | None = None,
) -> InsertStatement:
    """Build one parameterized INSERT covering every event in `events`."""
    if not events:
        raise ValueError("cannot build an INSERT for an empty batch")

    names = [*FIXED_COLUMNS, *(col.name for col in columns)]
    groups: list[str] = []
    params: dict[str, Any] = {}

    for i, event in enumerate(events):
        values = event_row(
            event,
            columns,
            store_timestamp_in_utc=store_timestamp_in_utc,
            format_provider=format_provider,
        )
        placeholders = []
        for j, value in enumerate(values, start=1):
            name = _param_name(i, j)
            params[name] = value
            placeholders.append(dialect.placeholder(name))
        groups.append(f"({', '.join(placeholders)})")

    sql = f"INSERT INTO {table} ({', '.join(names)})\nVALUES " + ",\n".join(groups)
    return InsertStatement(sql=sql, params=params, rows=len(groups))
