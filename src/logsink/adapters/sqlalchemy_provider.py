"""SQLAlchemy transport (MySQL by default).

Each `connect()` runs inside `engine.begin()`: the statement is committed
when the block exits normally and rolled back when it raises. Pooling is
left to the engine.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine

from logsink.core.dialects import MYSQL, SqlDialect


class SqlAlchemyConnection:
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> None:
        if params:
            self._conn.execute(text(sql), dict(params))
        else:
            # No bind parsing for parameterless statements (DDL).
            self._conn.exec_driver_sql(sql)

    def fetchone(self, sql: str) -> Sequence[Any] | None:
        row = self._conn.exec_driver_sql(sql).fetchone()
        return None if row is None else tuple(row)


class SqlAlchemyConnectionProvider:
    """
    Parameters
    ----------
    url : str
        SQLAlchemy database URL, e.g. "mysql+pymysql://user:pw@host/db".
    dialect : SqlDialect
        SQL flavour of the engine behind `url`; binds always use `:name`.
    **engine_kwargs
        Passed to `create_engine`.
    """

    def __init__(self, url: str, *, dialect: SqlDialect = MYSQL, **engine_kwargs: Any) -> None:
        self.url = url
        self.dialect = dialect
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine: Engine = create_engine(url, **engine_kwargs)

    @contextmanager
    def connect(self) -> Iterator[SqlAlchemyConnection]:
        with self.engine.begin() as conn:
            yield SqlAlchemyConnection(conn)

    def close(self) -> None:
        self.engine.dispose()
