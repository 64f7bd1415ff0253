"""Table sink: the flush target of the batcher.

`SqlTableSink` owns nothing mutable besides its frozen options. Every batch
gets its own connection, one INSERT statement and one round trip:

1. build the statement for the whole batch
2. open a connection scoped to the call
3. execute once; release the connection on every exit path

Failures are raised unchanged to the caller. Nothing is retried or logged
here; that belongs to the scheduler.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from logsink.core.config import SinkOptions
from logsink.core.dialects import EngineVersion
from logsink.core.insert import InsertStatement, build_insert_statement
from logsink.core.interfaces import IConnectionProvider
from logsink.core.models import LogEvent
from logsink.core.schema import ensure_table

logger = logging.getLogger(__name__)


class SqlTableSink:
    """
    Writes batches of `LogEvent` into a single relational table.

    Parameters
    ----------
    options : SinkOptions
        Table name, timestamp handling, message formatting and extra columns.
    provider : IConnectionProvider
        Transport used for table creation and every insert.

    When `options.auto_create_table` is set the table is created during
    construction; a failure there propagates and no sink is built.
    """

    def __init__(self, options: SinkOptions, provider: IConnectionProvider) -> None:
        if provider is None:
            raise ValueError("provider is required")

        self.options = options
        self.provider = provider
        self.columns = options.additional_columns
        self.engine_version: EngineVersion | None = None

        if options.auto_create_table:
            self.engine_version = ensure_table(provider, options.table_name, self.columns)

    @property
    def table_name(self) -> str:
        return self.options.table_name

    def build_statement(self, events: Sequence[LogEvent]) -> InsertStatement:
        return build_insert_statement(
            self.options.table_name,
            self.columns,
            events,
            dialect=self.provider.dialect,
            store_timestamp_in_utc=self.options.store_timestamp_in_utc,
            format_provider=self.options.format_provider,
        )

    def emit_batch(self, events: Sequence[LogEvent]) -> None:
        """Insert `events` with a single statement. An empty batch does nothing."""
        if not events:
            return

        statement = self.build_statement(events)
        with self.provider.connect() as connection:
            connection.execute(statement.sql, statement.params)

        logger.debug("inserted %d rows into %s", statement.rows, self.options.table_name)

    async def emit_batch_async(self, events: Sequence[LogEvent]) -> None:
        """`emit_batch` off the event loop (blocking I/O runs in a worker thread)."""
        if not events:
            return
        await asyncio.to_thread(self.emit_batch, list(events))

    def close(self) -> None:
        self.provider.close()
