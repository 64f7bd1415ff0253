"""Log event model consumed by the sink.

This module defines:
- `LogEventLevel`: ordered severity levels (the stored text is the level name)
- `LogEvent`: one immutable event (timestamp, level, template, properties, exception)
- `LogEventRecord`: pydantic schema used to load events from JSON records

Message templates use named holes: `{Name}`, `{@Name}` / `{$Name}`,
`{Name:format}` and `{Name,alignment}`. Doubled braces are literal.
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from logsink.core.serialization import format_json_value
from logsink.core.values import Properties, PropertyValue, PropertyValues, to_properties

# (value, format) → text; None format means "no format given".
FormatProvider = Callable[[Any, str | None], str]

_HOLE = re.compile(
    r"\{\{|\}\}|\{(?P<op>[@$])?(?P<name>[A-Za-z0-9_]+)(?:,(?P<align>-?\d+))?(?::(?P<fmt>[^{}]*))?\}"
)

_LEVEL_ALIASES = {
    "verbose": "Verbose",
    "trace": "Verbose",
    "debug": "Debug",
    "information": "Information",
    "info": "Information",
    "warning": "Warning",
    "warn": "Warning",
    "error": "Error",
    "fatal": "Fatal",
    "critical": "Fatal",
}


class LogEventLevel(IntEnum):
    Verbose = 0
    Debug = 1
    Information = 2
    Warning = 3
    Error = 4
    Fatal = 5

    @classmethod
    def parse(cls, text: str) -> LogEventLevel:
        """Parse a level name (case-insensitive, stdlib `logging` names accepted)."""
        canonical = _LEVEL_ALIASES.get((text or "").strip().lower())
        if canonical is None:
            raise ValueError(f"Unknown log level: {text!r}")
        return cls[canonical]

    @classmethod
    def from_logging_level(cls, levelno: int) -> LogEventLevel:
        """Map a stdlib `logging` level number onto the closest level."""
        if levelno >= 50:
            return cls.Fatal
        if levelno >= 40:
            return cls.Error
        if levelno >= 30:
            return cls.Warning
        if levelno >= 20:
            return cls.Information
        if levelno >= 10:
            return cls.Debug
        return cls.Verbose


def _format_scalar(value: Any, fmt: str | None, format_provider: FormatProvider | None) -> str:
    if format_provider is not None:
        return format_provider(value, fmt)
    if value is None:
        return "null"
    try:
        return format(value, fmt or "")
    except (ValueError, TypeError):
        # Format strings Python does not understand (e.g. "N2") render the plain value.
        return str(value)


def _render_value(value: PropertyValue, fmt: str | None, format_provider: FormatProvider | None) -> str:
    if isinstance(value, PropertyValues.Scalar):
        return _format_scalar(value.value, fmt, format_provider)
    return format_json_value(value)


@dataclass(frozen=True, slots=True)
class LogEvent:
    """One structured log event.

    `timestamp` must be timezone-aware; its offset is kept as given.
    `exception` is either the raised exception or its pre-rendered text.
    """

    timestamp: datetime
    level: LogEventLevel
    message_template: str
    properties: Properties = field(default_factory=dict)
    exception: BaseException | str | None = None

    def __post_init__(self):
        if self.timestamp.tzinfo is None or self.timestamp.utcoffset() is None:
            raise ValueError("LogEvent.timestamp must be timezone-aware")
        if not isinstance(self.level, LogEventLevel):
            raise ValueError(f"{self.level!r} is not a LogEventLevel")

    @classmethod
    def create(
        cls,
        level: LogEventLevel,
        message_template: str,
        *,
        timestamp: datetime | None = None,
        exception: BaseException | str | None = None,
        **properties: Any,
    ) -> LogEvent:
        """Build an event from keyword properties (captured with `to_property_value`)."""
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            level=level,
            message_template=message_template,
            properties=to_properties(properties),
            exception=exception,
        )

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> LogEvent:
        """Build an event from a JSON-compatible record (see `LogEventRecord`)."""
        try:
            parsed = LogEventRecord.model_validate(record)
        except ValidationError as e:
            raise ValueError(f"Invalid log event record: {e}") from e
        return cls(
            timestamp=parsed.timestamp,
            level=parsed.level,
            message_template=parsed.message_template,
            properties=to_properties(parsed.properties),
            exception=parsed.exception,
        )

    def exception_text(self) -> str | None:
        """Full text of the attached exception, traceback included."""
        if self.exception is None:
            return None
        if isinstance(self.exception, str):
            return self.exception
        return "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        ).rstrip("\n")

    def render_message(self, format_provider: FormatProvider | None = None) -> str:
        """Expand the message template against this event's properties.

        Holes naming a missing property are kept verbatim.
        """

        def _sub(m: re.Match[str]) -> str:
            token = m.group(0)
            if token == "{{":
                return "{"
            if token == "}}":
                return "}"
            value = self.properties.get(m.group("name"))
            if value is None:
                return token
            text = _render_value(value, m.group("fmt"), format_provider)
            align = m.group("align")
            if align:
                width = int(align)
                text = text.ljust(-width) if width < 0 else text.rjust(width)
            return text

        return _HOLE.sub(_sub, self.message_template)


class LogEventRecord(BaseModel):
    """JSON record shape accepted by `LogEvent.from_dict` (one JSONL line)."""

    timestamp: datetime
    level: LogEventLevel = LogEventLevel.Information
    message_template: str = Field(default="", validation_alias=AliasChoices("message", "message_template"))
    properties: dict[str, Any] = Field(default_factory=dict)
    exception: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return LogEventLevel.parse(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
