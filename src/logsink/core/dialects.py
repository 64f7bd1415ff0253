"""SQL dialect details that differ between destination engines.

A `SqlDialect` bundles everything the schema provisioner and the insert
builder need to know about the engine behind a connection:

- how to ask the engine for its version (the query returns (name, value) rows)
- which native JSON type exists and from which version on
- how the auto-incrementing `Id` column is declared
- which statements must run before `CREATE TABLE` (e.g. sequences)
- how a named bind parameter is written in SQL text
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class EngineVersion:
    major: int = 0
    minor: int = 0
    patch: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


ZERO_VERSION = EngineVersion()


@dataclass(frozen=True)
class SqlDialect:
    name: str
    version_query: str
    json_type: str
    json_min_version: EngineVersion
    identity_column: str  # may reference {table}
    text_type: str = "TEXT"
    placeholder_prefix: str = ":"
    prepare_statements: tuple[str, ...] = field(default_factory=tuple)  # may reference {table}

    def placeholder(self, name: str) -> str:
        return f"{self.placeholder_prefix}{name}"

    def identity_sql(self, table: str) -> str:
        return self.identity_column.format(table=table)

    def prepare_sql(self, table: str) -> list[str]:
        return [stmt.format(table=table) for stmt in self.prepare_statements]


MYSQL = SqlDialect(
    name="mysql",
    version_query="SHOW VARIABLES LIKE 'version'",
    json_type="JSON",
    json_min_version=EngineVersion(5, 7, 8),
    identity_column="Id INTEGER NOT NULL AUTO_INCREMENT",
    placeholder_prefix=":",
)

DUCKDB = SqlDialect(
    name="duckdb",
    version_query="SELECT 'version', ltrim(version(), 'v')",
    json_type="JSON",
    json_min_version=EngineVersion(0, 7, 0),
    identity_column="Id INTEGER NOT NULL DEFAULT nextval('{table}_Id_seq')",
    placeholder_prefix="$",
    prepare_statements=("CREATE SEQUENCE IF NOT EXISTS {table}_Id_seq",),
)

DIALECTS: dict[str, SqlDialect] = {d.name: d for d in (MYSQL, DUCKDB)}
