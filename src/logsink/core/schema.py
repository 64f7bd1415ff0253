"""Destination table provisioning.

The table is created once, with `CREATE TABLE IF NOT EXISTS`, and never
migrated afterwards. Layout:

    Id, Timestamp, Level, Message, Exception, <additional columns…>, Properties

`Properties` uses the engine's native JSON type when the detected engine
version supports it, plain text otherwise.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from logsink.core.columns import ColumnConfig
from logsink.core.dialects import ZERO_VERSION, EngineVersion, SqlDialect
from logsink.core.interfaces import IConnectionProvider, ISqlConnection

logger = logging.getLogger(__name__)

_VERSION_PREFIX = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?")


def parse_engine_version(text: str | None) -> EngineVersion:
    """Parse the leading `major.minor[.patch]` of `text` ("8.0.27-log" → 8.0.27).

    Anything without such a prefix yields `ZERO_VERSION`.
    """
    m = _VERSION_PREFIX.match(text or "")
    if m is None:
        return ZERO_VERSION
    major, minor, patch = m.groups()
    return EngineVersion(int(major), int(minor), int(patch or 0))


def detect_engine_version(connection: ISqlConnection, dialect: SqlDialect) -> EngineVersion:
    """Ask the engine for its version; a missing row means `ZERO_VERSION`."""
    row = connection.fetchone(dialect.version_query)
    if not row:
        return ZERO_VERSION
    value = row[1] if len(row) > 1 else row[0]
    return parse_engine_version("" if value is None else str(value))


def properties_column_type(version: EngineVersion, dialect: SqlDialect) -> str:
    if version >= dialect.json_min_version:
        return dialect.json_type
    return dialect.text_type


def build_create_table_sql(
    table: str,
    columns: Sequence[ColumnConfig],
    properties_type: str,
    dialect: SqlDialect,
) -> str:
    parts = [
        dialect.identity_sql(table),
        "Timestamp DATETIME NOT NULL",
        "Level VARCHAR(20) NOT NULL",
        "Message TEXT",
        "Exception TEXT",
    ]
    # Column names and types are trusted configuration, embedded as-is.
    parts.extend(f"{col.name} {col.type}" for col in columns)
    parts.append(f"Properties {properties_type}")
    parts.append("PRIMARY KEY (Id)")
    return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(parts)});"


def ensure_table(
    provider: IConnectionProvider,
    table: str,
    columns: Sequence[ColumnConfig],
) -> EngineVersion:
    """Create `table` unless it exists. Returns the detected engine version.

    Any transport error propagates to the caller.
    """
    dialect = provider.dialect
    with provider.connect() as connection:
        version = detect_engine_version(connection, dialect)
        properties_type = properties_column_type(version, dialect)

        for stmt in dialect.prepare_sql(table):
            connection.execute(stmt)
        connection.execute(build_create_table_sql(table, columns, properties_type, dialect))

    logger.debug(
        "ensured table %s (engine %s %s, Properties %s, %d additional columns)",
        table,
        dialect.name,
        version,
        properties_type,
        len(columns),
    )
    return version
