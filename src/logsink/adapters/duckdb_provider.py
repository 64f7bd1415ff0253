"""DuckDB transport.

One DuckDB database per provider. Each `connect()` hands out a fresh cursor
on that database (a connection of its own in DuckDB terms) and closes it
when the block exits, so in-memory databases are shared across calls.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import duckdb

from logsink.core.dialects import DUCKDB, SqlDialect


def _wall_clock(value: Any) -> Any:
    # DuckDB converts aware datetimes to UTC on bind; keep the local wall-clock time.
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class DuckDBConnection:
    def __init__(self, con: duckdb.DuckDBPyConnection) -> None:
        self._con = con

    @property
    def raw(self) -> duckdb.DuckDBPyConnection:
        return self._con

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> None:
        if params:
            self._con.execute(sql, {k: _wall_clock(v) for k, v in params.items()})
        else:
            self._con.execute(sql)

    def fetchone(self, sql: str) -> Sequence[Any] | None:
        return self._con.execute(sql).fetchone()


class DuckDBConnectionProvider:
    """
    Parameters
    ----------
    database : str
        Database file path, or ":memory:".
    threads : int | None
        Optional `PRAGMA threads` setting.
    """

    dialect: SqlDialect = DUCKDB

    def __init__(self, database: str = ":memory:", *, threads: int | None = None) -> None:
        self.database = database
        self._db = duckdb.connect(database)
        if threads is not None:
            self._db.execute(f"PRAGMA threads={int(threads)}")

    @contextmanager
    def connect(self) -> Iterator[DuckDBConnection]:
        con = self._db.cursor()
        try:
            yield DuckDBConnection(con)
        finally:
            con.close()

    def close(self) -> None:
        self._db.close()
