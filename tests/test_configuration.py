from datetime import timedelta
from unittest.mock import patch

import pytest

from logsink.adapters.duckdb_provider import DuckDBConnectionProvider
from logsink.batching import PeriodicBatcher
from logsink.configuration import build_sink, configure_sink, is_duckdb_target, make_provider
from logsink.core.columns import ColumnConfig
from logsink.core.config import SinkOptions
from logsink.core.dialects import MYSQL
from logsink.core.models import LogEventLevel


def test_options_defaults():
    opts = SinkOptions(connection_target="duckdb:logs.duckdb")
    assert opts.table_name == "Logs"
    assert opts.batch_posting_limit == 100
    assert opts.period == timedelta(seconds=5)
    assert opts.store_timestamp_in_utc is False
    assert opts.auto_create_table is False
    assert opts.additional_columns == ()
    assert opts.format_provider is None
    assert opts.minimum_level is LogEventLevel.Verbose


@pytest.mark.parametrize(
    "kwargs",
    [
        {"connection_target": ""},
        {"connection_target": "   "},
        {"connection_target": None},
        {"connection_target": "x", "table_name": ""},
        {"connection_target": "x", "batch_posting_limit": 0},
        {"connection_target": "x", "period": timedelta(0)},
        {"connection_target": "x", "period": 5},
        {"connection_target": "x", "queue_limit": "10"},
        {"connection_target": "x", "failure_limit": 0},
        {"connection_target": "x", "failure_limit": 1.5},
        {"connection_target": "x", "minimum_level": "Error"},
        {"connection_target": "x", "queue_limit": 0},
        {"connection_target": "x", "format_provider": "not callable"},
        {"connection_target": "x", "additional_columns": ["UserId"]},
    ],
)
def test_options_validation(kwargs):
    with pytest.raises(ValueError):
        SinkOptions(**kwargs)


def test_options_freeze_column_list():
    cols = [ColumnConfig("UserId", "TEXT", "UserId")]
    opts = SinkOptions(connection_target="x", additional_columns=cols)
    cols.append(ColumnConfig("Other", "TEXT", "Other"))
    assert opts.additional_columns == (ColumnConfig("UserId", "TEXT", "UserId"),)


@pytest.mark.parametrize(
    "target, expected",
    [
        (":memory:", True),
        ("duckdb:/var/log/app.duckdb", True),
        ("logs.duckdb", True),
        ("mysql+pymysql://u:p@db/logs", False),
    ],
)
def test_is_duckdb_target(target, expected):
    assert is_duckdb_target(target) is expected


def test_make_provider_picks_duckdb():
    provider = make_provider("duckdb::memory:")
    try:
        assert isinstance(provider, DuckDBConnectionProvider)
        assert provider.database == ":memory:"
    finally:
        provider.close()


def test_make_provider_picks_sqlalchemy_for_urls():
    with patch("logsink.adapters.sqlalchemy_provider.create_engine") as mock_engine:
        provider = make_provider("mysql+pymysql://u:p@db/logs")
    mock_engine.assert_called_once_with("mysql+pymysql://u:p@db/logs", pool_pre_ping=True)
    assert provider.dialect is MYSQL


def test_build_sink_invokes_columns_callback(recording_provider):
    sink = build_sink(
        "mysql://ignored",
        table_name="AppLogs",
        columns=lambda c: c.add_column_for_property("UserId", "INTEGER").add_column_for_property("Area"),
        provider=recording_provider,
    )
    assert [c.name for c in sink.columns] == ["UserId", "Area"]
    assert sink.table_name == "AppLogs"


@pytest.mark.parametrize("kwargs", [{"table_name": None}, {"table_name": ""}])
def test_build_sink_rejects_bad_table(recording_provider, kwargs):
    with pytest.raises(ValueError):
        build_sink("mysql://ignored", provider=recording_provider, **kwargs)


def test_build_sink_rejects_missing_target(recording_provider):
    with pytest.raises(ValueError):
        build_sink(None, provider=recording_provider)  # type: ignore[arg-type]


def test_build_sink_rejects_blank_column_property(recording_provider):
    with pytest.raises(ValueError):
        build_sink("mysql://ignored", provider=recording_provider, columns=lambda c: c.add_column_for_property(" "))


def test_configure_sink_returns_wired_batcher(recording_provider):
    batcher = configure_sink(
        "mysql://ignored",
        batch_posting_limit=25,
        period=timedelta(seconds=2),
        queue_limit=1000,
        minimum_level=LogEventLevel.Error,
        provider=recording_provider,
    )
    assert isinstance(batcher, PeriodicBatcher)
    assert batcher.batch_posting_limit == 25
    assert batcher.period == timedelta(seconds=2)
    assert batcher.queue_limit == 1000
    assert batcher.minimum_level is LogEventLevel.Error
    assert batcher.sink.provider is recording_provider


@pytest.mark.asyncio
async def test_configure_sink_end_to_end(make_event):
    batcher = configure_sink(":memory:", auto_create_table=True, batch_posting_limit=2)
    async with batcher:
        for i in range(5):
            batcher.emit(make_event(N=i))
    with batcher.sink.provider.connect() as conn:
        (count,) = conn.fetchone("SELECT count(*) FROM Logs")
    assert count == 5
    assert batcher.stats.written == 5
