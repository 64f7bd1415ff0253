import json
from datetime import datetime

import duckdb
import pytest

from logsink.core.columns import ColumnsConfig
from logsink.core.config import SinkOptions
from logsink.core.dialects import EngineVersion
from logsink.core.interfaces import IBatchSink, IConnectionProvider
from logsink.core.models import LogEventLevel
from logsink.sink import SqlTableSink


def _options(**kwargs) -> SinkOptions:
    kwargs.setdefault("connection_target", "mysql+pymysql://u:p@localhost/db")
    return SinkOptions(**kwargs)


def test_sink_satisfies_the_flush_contract(recording_provider):
    sink = SqlTableSink(_options(), recording_provider)
    assert isinstance(sink, IBatchSink)
    assert isinstance(recording_provider, IConnectionProvider)


def test_construction_without_auto_create_touches_nothing(recording_provider):
    SqlTableSink(_options(), recording_provider)
    assert recording_provider.opened == 0


def test_auto_create_runs_at_construction(recording_provider):
    sink = SqlTableSink(_options(auto_create_table=True), recording_provider)
    assert sink.engine_version == EngineVersion(8, 0, 27)
    ((sql,),) = recording_provider.executed
    assert sql.startswith("CREATE TABLE IF NOT EXISTS Logs (")


def test_auto_create_failure_aborts_construction(recording_provider):
    recording_provider.connection.execute.side_effect = PermissionError("no CREATE privilege")
    with pytest.raises(PermissionError):
        SqlTableSink(_options(auto_create_table=True), recording_provider)


def test_empty_batch_is_a_no_op(recording_provider):
    sink = SqlTableSink(_options(), recording_provider)
    sink.emit_batch([])
    assert recording_provider.opened == 0
    recording_provider.connection.execute.assert_not_called()


def test_batch_is_one_statement_on_one_connection(recording_provider, make_event):
    sink = SqlTableSink(_options(), recording_provider)
    sink.emit_batch([make_event(Name="a"), make_event(Name="b")])

    assert recording_provider.opened == recording_provider.released == 1
    ((sql, params),) = recording_provider.executed
    assert sql.count("(:p") == 2
    assert len(params) == 10
    assert params["p0_3"] == params["p1_3"] == ""


def test_extra_column_scenario(recording_provider, make_event):
    cols = ColumnsConfig().add_column_for_property("UserId").create_columns()
    sink = SqlTableSink(_options(additional_columns=cols), recording_provider)
    sink.emit_batch([make_event(UserId=42), make_event(Name="anon")])

    ((_, params),) = recording_provider.executed
    values = list(params.values())
    assert values[5] == 42
    assert values[11] is None


def test_execution_errors_propagate_unchanged(recording_provider, make_event):
    err = ConnectionError("server has gone away")
    recording_provider.connection.execute.side_effect = err
    sink = SqlTableSink(_options(), recording_provider)

    with pytest.raises(ConnectionError) as exc_info:
        sink.emit_batch([make_event()])

    assert exc_info.value is err
    assert recording_provider.released == 1


def test_utc_option_is_forwarded(recording_provider, make_event):
    sink = SqlTableSink(_options(store_timestamp_in_utc=True), recording_provider)
    sink.emit_batch([make_event(offset_hours=3)])
    ((_, params),) = recording_provider.executed
    assert params["p0_1"].utcoffset().total_seconds() == 0


@pytest.mark.asyncio
async def test_emit_batch_async(recording_provider, make_event):
    sink = SqlTableSink(_options(), recording_provider)
    await sink.emit_batch_async([make_event()])
    await sink.emit_batch_async([])
    assert recording_provider.opened == 1


@pytest.mark.asyncio
async def test_emit_batch_async_propagates(recording_provider, make_event):
    recording_provider.connection.execute.side_effect = RuntimeError("deadlock")
    sink = SqlTableSink(_options(), recording_provider)
    with pytest.raises(RuntimeError, match="deadlock"):
        await sink.emit_batch_async([make_event()])


def test_end_to_end_on_duckdb(duckdb_provider, make_event):
    cols = ColumnsConfig().add_column_for_property("UserId", "INTEGER").create_columns()
    sink = SqlTableSink(
        _options(connection_target=":memory:", auto_create_table=True, additional_columns=cols),
        duckdb_provider,
    )

    try:
        raise ValueError("bad input")
    except ValueError as e:
        failing = make_event("Rejected {Name}", level=LogEventLevel.Error, exception=e, Name="x")

    sink.emit_batch([make_event(Name="World", UserId=42), failing])
    sink.emit_batch([make_event("Third {Name}", Name="z", Tags=["a", "b"])])

    with duckdb_provider.connect() as conn:
        rows = conn.raw.execute(
            "SELECT Id, Level, Message, Exception, UserId, Properties FROM Logs ORDER BY Id"
        ).fetchall()

    assert [r[0] for r in rows] == [1, 2, 3]
    assert [r[1] for r in rows] == ["Information", "Error", "Information"]
    assert [r[2] for r in rows] == ["Hello World", "Rejected x", "Third z"]
    assert rows[0][3] == ""
    assert "ValueError: bad input" in rows[1][3]
    assert [r[4] for r in rows] == [42, None, None]
    assert json.loads(rows[2][5]) == {"Name": "z", "Tags": ["a", "b"]}


def test_close_releases_the_provider(duckdb_provider):
    sink = SqlTableSink(_options(auto_create_table=True), duckdb_provider)
    sink.close()
    with pytest.raises(duckdb.Error):
        with duckdb_provider.connect():
            pass


@pytest.mark.parametrize("utc, expected_hour", [(False, 12), (True, 10)])
def test_stored_timestamp_on_duckdb(duckdb_provider, make_event, utc, expected_hour):
    sink = SqlTableSink(
        _options(connection_target=":memory:", auto_create_table=True, store_timestamp_in_utc=utc),
        duckdb_provider,
    )
    sink.emit_batch([make_event(Name="x", offset_hours=2)])

    with duckdb_provider.connect() as conn:
        (stored,) = conn.fetchone("SELECT Timestamp FROM Logs")
    assert stored == datetime(2024, 3, 1, expected_hour, 30)


def test_event_without_properties_fails_json_column_on_duckdb(duckdb_provider, make_event):
    # Property-less events bind "" to Properties, which a native JSON column rejects.
    sink = SqlTableSink(_options(connection_target=":memory:", auto_create_table=True), duckdb_provider)
    with pytest.raises(duckdb.ConversionException):
        sink.emit_batch([make_event("static"), make_event(Name="x")])

    with duckdb_provider.connect() as conn:
        (count,) = conn.fetchone("SELECT count(*) FROM Logs")
    assert count == 0
