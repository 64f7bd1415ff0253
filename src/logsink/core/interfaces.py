from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from logsink.core.dialects import SqlDialect
from logsink.core.models import LogEvent


# ---------------------------------------------------------------------------
# ISqlConnection
# ---------------------------------------------------------------------------

@runtime_checkable
class ISqlConnection(Protocol):
    """
    One open connection to the destination engine, scoped to a single call.

    Domain expectations:
    - Statements are executed synchronously; errors are raised unchanged.
    - Named parameters are written with the provider dialect's placeholder syntax.
    """

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> None:
        """Execute one statement (optionally parameterized)."""
        ...

    def fetchone(self, sql: str) -> Sequence[Any] | None:
        """Run a query and return its first row, or None when it has no rows."""
        ...


# ---------------------------------------------------------------------------
# IConnectionProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IConnectionProvider(Protocol):
    """
    Opaque SQL transport.

    Domain expectations:
    - `connect()` acquires a connection and releases it when the block exits,
      on every exit path.
    - Pooling, network I/O and transaction handling are the provider's concern.

    Implementations:
    - DuckDBConnectionProvider (embedded / file database)
    - SqlAlchemyConnectionProvider (MySQL and any other SQLAlchemy URL)
    - In-memory fakes for testing
    """

    dialect: SqlDialect

    def connect(self) -> AbstractContextManager[ISqlConnection]:
        ...

    def close(self) -> None:
        """Release pooled resources; no connection is handed out afterwards."""
        ...


# ---------------------------------------------------------------------------
# IBatchSink
# ---------------------------------------------------------------------------

@runtime_checkable
class IBatchSink(Protocol):
    """
    The flush contract offered to a batching scheduler.

    Domain expectations:
    - One call per delivered batch; an empty batch is a no-op.
    - Success returns normally, failure raises. No retry happens inside.
    """

    def emit_batch(self, events: Sequence[LogEvent]) -> None:
        ...

    async def emit_batch_async(self, events: Sequence[LogEvent]) -> None:
        ...
