from __future__ import annotations

from .batching import BatcherStats, PeriodicBatcher
from .configuration import build_sink, configure_sink
from .core.columns import ColumnConfig, ColumnsConfig
from .core.config import SinkOptions
from .core.models import LogEvent, LogEventLevel
from .core.values import PropertyValue, PropertyValues, to_property_value
from .sink import SqlTableSink

__all__ = [
    "configure_sink",
    "build_sink",
    "SqlTableSink",
    "SinkOptions",
    "PeriodicBatcher",
    "BatcherStats",
    "ColumnConfig",
    "ColumnsConfig",
    "LogEvent",
    "LogEventLevel",
    "PropertyValue",
    "PropertyValues",
    "to_property_value",
]
