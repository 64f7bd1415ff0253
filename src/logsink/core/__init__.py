"""Core models, serialization and SQL building.

This package provides:
- Event model (LogEvent, LogEventLevel, PropertyValues)
- Column model (ColumnConfig, ColumnsConfig)
- Property serializer (extract_scalar_or_json, serialize_properties_to_json)
- Schema provisioning (ensure_table) and INSERT building (build_insert_statement)
"""

from logsink.core.columns import ColumnConfig, ColumnsConfig
from logsink.core.config import SinkOptions
from logsink.core.insert import InsertStatement, build_insert_statement
from logsink.core.models import LogEvent, LogEventLevel
from logsink.core.schema import ensure_table, parse_engine_version
from logsink.core.serialization import extract_scalar_or_json, serialize_properties_to_json

__all__ = [
    "ColumnConfig",
    "ColumnsConfig",
    "SinkOptions",
    "InsertStatement",
    "build_insert_statement",
    "LogEvent",
    "LogEventLevel",
    "ensure_table",
    "parse_engine_version",
    "extract_scalar_or_json",
    "serialize_properties_to_json",
]
