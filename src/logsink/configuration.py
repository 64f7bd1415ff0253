"""Wiring helpers: options + transport + sink + batcher in one call.

`configure_sink(...)` is the usual entry point for applications:

    batcher = configure_sink(
        "mysql+pymysql://app:secret@db/logs",
        auto_create_table=True,
        columns=lambda c: c.add_column_for_property("UserId", "INTEGER"),
    )
    async with batcher:
        batcher.emit(LogEvent.create(LogEventLevel.Information, "Hello {Name}", Name="World"))
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from logsink.batching import PeriodicBatcher
from logsink.constants import (
    DEFAULT_BATCH_POSTING_LIMIT,
    DEFAULT_FAILURE_LIMIT,
    DEFAULT_PERIOD,
    DEFAULT_TABLE_NAME,
)
from logsink.core.columns import ColumnsConfig
from logsink.core.config import SinkOptions
from logsink.core.interfaces import IConnectionProvider
from logsink.core.models import FormatProvider, LogEventLevel
from logsink.sink import SqlTableSink

DUCKDB_SCHEME = "duckdb:"


def is_duckdb_target(target: str) -> bool:
    return (
        target == ":memory:"
        or target.startswith(DUCKDB_SCHEME)
        or target.endswith(".duckdb")
    )


def make_provider(connection_target: str) -> IConnectionProvider:
    """Pick a transport for `connection_target`.

    - ":memory:", "duckdb:<path>", "*.duckdb" → DuckDB
    - anything else is treated as a SQLAlchemy URL (MySQL dialect)
    """
    if is_duckdb_target(connection_target):
        from logsink.adapters.duckdb_provider import DuckDBConnectionProvider

        database = connection_target.removeprefix(DUCKDB_SCHEME) or ":memory:"
        return DuckDBConnectionProvider(database)

    from logsink.adapters.sqlalchemy_provider import SqlAlchemyConnectionProvider

    return SqlAlchemyConnectionProvider(connection_target)


def build_sink(
    connection_target: str,
    *,
    table_name: str = DEFAULT_TABLE_NAME,
    batch_posting_limit: int = DEFAULT_BATCH_POSTING_LIMIT,
    period: timedelta | None = None,
    queue_limit: int | None = None,
    failure_limit: int = DEFAULT_FAILURE_LIMIT,
    minimum_level: LogEventLevel = LogEventLevel.Verbose,
    format_provider: FormatProvider | None = None,
    store_timestamp_in_utc: bool = False,
    auto_create_table: bool = False,
    columns: Callable[[ColumnsConfig], object] | None = None,
    provider: IConnectionProvider | None = None,
) -> SqlTableSink:
    """Validate arguments and build a `SqlTableSink` (table created if asked)."""
    if connection_target is None:
        raise ValueError("connection_target is required")
    if table_name is None:
        raise ValueError("table_name is required")

    cols = ColumnsConfig()
    if columns is not None:
        columns(cols)

    options = SinkOptions(
        connection_target=connection_target,
        table_name=table_name,
        batch_posting_limit=batch_posting_limit,
        period=period or DEFAULT_PERIOD,
        queue_limit=queue_limit,
        failure_limit=failure_limit,
        minimum_level=minimum_level,
        format_provider=format_provider,
        store_timestamp_in_utc=store_timestamp_in_utc,
        auto_create_table=auto_create_table,
        additional_columns=cols.create_columns(),
    )
    return SqlTableSink(options, provider or make_provider(options.connection_target))


def configure_sink(connection_target: str, **kwargs) -> PeriodicBatcher:
    """Build a sink (see `build_sink`) and the `PeriodicBatcher` that feeds it.

    The batcher is returned unstarted; use `async with` or `await start()`.
    """
    sink = build_sink(connection_target, **kwargs)
    return batcher_for(sink)


def batcher_for(sink: SqlTableSink) -> PeriodicBatcher:
    options = sink.options
    return PeriodicBatcher(
        sink,
        batch_posting_limit=options.batch_posting_limit,
        period=options.period,
        queue_limit=options.queue_limit,
        failure_limit=options.failure_limit,
        minimum_level=options.minimum_level,
    )
