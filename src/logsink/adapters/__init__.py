"""SQL transports implementing `IConnectionProvider`.

This package provides:
- DuckDBConnectionProvider: embedded DuckDB database (file or in-memory)
- SqlAlchemyConnectionProvider: any SQLAlchemy URL, MySQL dialect by default
"""

from logsink.adapters.duckdb_provider import DuckDBConnectionProvider
from logsink.adapters.sqlalchemy_provider import SqlAlchemyConnectionProvider

__all__ = [
    "DuckDBConnectionProvider",
    "SqlAlchemyConnectionProvider",
]
