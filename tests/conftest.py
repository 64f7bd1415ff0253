from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from logsink.adapters.duckdb_provider import DuckDBConnectionProvider
from logsink.core.dialects import MYSQL
from logsink.core.models import LogEvent, LogEventLevel


class RecordingProvider:
    """In-memory provider that records every statement it is asked to run."""

    def __init__(self, dialect=MYSQL, version_row=("version", "8.0.27-log")):
        self.dialect = dialect
        self.connection = MagicMock()
        self.connection.fetchone.return_value = version_row
        self.opened = 0
        self.released = 0

    @contextmanager
    def connect(self):
        self.opened += 1
        try:
            yield self.connection
        finally:
            self.released += 1

    def close(self):
        pass

    @property
    def executed(self):
        return [c.args for c in self.connection.execute.call_args_list]


@pytest.fixture
def recording_provider():
    return RecordingProvider()


@pytest.fixture
def duckdb_provider():
    provider = DuckDBConnectionProvider(":memory:")
    yield provider
    provider.close()


@pytest.fixture
def make_event():
    def _make(
        message="Hello {Name}",
        *,
        level=LogEventLevel.Information,
        offset_hours=2,
        exception=None,
        **properties,
    ) -> LogEvent:
        ts = datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone(timedelta(hours=offset_hours)))
        return LogEvent.create(level, message, timestamp=ts, exception=exception, **properties)

    return _make
