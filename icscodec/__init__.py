"""icscodec - iCalendar (RFC 5545 / RFC 7986) parsing, validation and serialization."""

from .assembler import ICSParser, parse
from .config import CRLF, FOLD_WIDTH, CodecSettings, get_settings
from .exceptions import (
    ICSContentTooLargeError,
    ICSError,
    ICSParseError,
    ICSStructuralError,
    ICSSyntaxError,
    ICSValueError,
    StructuralErrorKind,
    SyntaxErrorKind,
    ValueErrorKind,
)
from .logging_config import configure_logging
from .models import Calendar, Component, Parameter, Property, Value
from .schema import ComponentKind
from .validator import Severity, ValidationIssue, ValidationKind, validate
from .value_types import (
    DateTimeValue,
    Duration,
    Frequency,
    Geo,
    Period,
    Recur,
    TimeForm,
    UtcOffset,
    ValueType,
    Weekday,
    WeekdayNum,
)
from .writer import ICSWriter, serialize, serialize_component

__version__ = "1.0.0"


__all__ = [
    "CRLF",
    "Calendar",
    "CodecSettings",
    "Component",
    "ComponentKind",
    "DateTimeValue",
    "Duration",
    "FOLD_WIDTH",
    "Frequency",
    "Geo",
    "ICSContentTooLargeError",
    "ICSError",
    "ICSParseError",
    "ICSParser",
    "ICSStructuralError",
    "ICSSyntaxError",
    "ICSValueError",
    "ICSWriter",
    "Parameter",
    "Period",
    "Property",
    "Recur",
    "Severity",
    "StructuralErrorKind",
    "SyntaxErrorKind",
    "TimeForm",
    "UtcOffset",
    "ValidationIssue",
    "ValidationKind",
    "Value",
    "ValueErrorKind",
    "ValueType",
    "Weekday",
    "WeekdayNum",
    "__version__",
    "configure_logging",
    "get_settings",
    "parse",
    "serialize",
    "serialize_component",
    "validate",
]
