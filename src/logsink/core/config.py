from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from logsink.constants import (
    DEFAULT_BATCH_POSTING_LIMIT,
    DEFAULT_FAILURE_LIMIT,
    DEFAULT_PERIOD,
    DEFAULT_TABLE_NAME,
)
from logsink.core.columns import ColumnConfig
from logsink.core.models import FormatProvider, LogEventLevel


@dataclass(frozen=True)
class SinkOptions:
    """Configuration for one table sink and the batcher feeding it.

    Validation happens here, at construction, never at flush time.
    """

    connection_target: str
    table_name: str = DEFAULT_TABLE_NAME
    batch_posting_limit: int = DEFAULT_BATCH_POSTING_LIMIT  # used by the batcher
    period: timedelta = DEFAULT_PERIOD  # used by the batcher
    queue_limit: int | None = None  # used by the batcher; None = unbounded
    failure_limit: int = DEFAULT_FAILURE_LIMIT  # used by the batcher
    minimum_level: LogEventLevel = LogEventLevel.Verbose  # used by the batcher
    format_provider: FormatProvider | None = None
    store_timestamp_in_utc: bool = False
    auto_create_table: bool = False
    additional_columns: tuple[ColumnConfig, ...] = ()

    def __post_init__(self):
        if not isinstance(self.connection_target, str) or not self.connection_target.strip():
            raise ValueError("connection_target must be a non-empty string")
        if not isinstance(self.table_name, str) or not self.table_name.strip():
            raise ValueError("table_name must be a non-empty string")
        if not isinstance(self.batch_posting_limit, int) or self.batch_posting_limit <= 0:
            raise ValueError("batch_posting_limit must be a positive integer")
        if not isinstance(self.period, timedelta) or self.period <= timedelta(0):
            raise ValueError("period must be a positive timedelta")
        if self.queue_limit is not None and (not isinstance(self.queue_limit, int) or self.queue_limit <= 0):
            raise ValueError("queue_limit must be a positive integer or None")
        if not isinstance(self.failure_limit, int) or self.failure_limit <= 0:
            raise ValueError("failure_limit must be a positive integer")
        if not isinstance(self.minimum_level, LogEventLevel):
            raise ValueError(f"{self.minimum_level!r} is not a LogEventLevel")
        if self.format_provider is not None and not callable(self.format_provider):
            raise ValueError("format_provider must be callable")
        # Freeze whatever sequence was passed in.
        object.__setattr__(self, "additional_columns", tuple(self.additional_columns))
        for col in self.additional_columns:
            if not isinstance(col, ColumnConfig):
                raise ValueError(f"{col!r} is not a ColumnConfig")
