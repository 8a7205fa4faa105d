"""ICS codec exceptions for error handling."""

from enum import Enum
from typing import Optional


class SyntaxErrorKind(str, Enum):
    """Tokenizer and unfolder failure kinds."""

    UNTERMINATED_LINE = "UnterminatedLine"
    UNTERMINATED_QUOTE = "UnterminatedQuote"
    MISSING_COLON = "MissingColon"
    BAD_PARAMETER_SYNTAX = "BadParameterSyntax"
    EMPTY_NAME = "EmptyName"


class StructuralErrorKind(str, Enum):
    """Assembler failure kinds."""

    UNMATCHED_END = "UnmatchedEnd"
    MISPLACED_ALARM = "MisplacedAlarm"
    MISPLACED_COMPONENT = "MisplacedComponent"
    UNTERMINATED_COMPONENT = "UnterminatedComponent"
    DUPLICATE_REQUIRED_PROPERTY = "DuplicateRequiredProperty"
    MISSING_CALENDAR = "MissingCalendar"
    CONTENT_OUTSIDE_CALENDAR = "ContentOutsideCalendar"


class ValueErrorKind(str, Enum):
    """Value parser failure kinds, named after the expected type."""

    BAD_TEXT = "BadText"
    BAD_DATE = "BadDate"
    BAD_DATE_TIME = "BadDateTime"
    BAD_DURATION = "BadDuration"
    BAD_PERIOD = "BadPeriod"
    BAD_RECUR = "BadRecur"
    BAD_INTEGER = "BadInteger"
    BAD_FLOAT = "BadFloat"
    BAD_BOOLEAN = "BadBoolean"
    BAD_URI = "BadUri"
    BAD_CAL_ADDRESS = "BadCalAddress"
    BAD_UTC_OFFSET = "BadUtcOffset"
    BAD_BINARY = "BadBinary"
    BAD_GEO = "BadGeo"
    BAD_VALUE_TYPE = "BadValueType"
    BAD_PARAMETER = "BadParameter"


class ICSError(Exception):
    """Base exception for ICS codec errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ICSParseError(ICSError):
    """Exception raised when ICS content cannot be parsed.

    Every subclass aborts the parse; ``line`` is the 1-based physical line
    number where the offending logical line starts and ``column`` the byte
    offset inside that logical line, when known.
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        super().__init__(_with_position(message, line, column))
        self.message = message


class ICSSyntaxError(ICSParseError):
    """Exception raised for malformed physical or content lines."""

    def __init__(
        self,
        kind: SyntaxErrorKind,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.kind = kind
        super().__init__(f"{kind.value}: {message}", line, column)


class ICSStructuralError(ICSParseError):
    """Exception raised when components are nested or closed illegally."""

    def __init__(
        self,
        kind: StructuralErrorKind,
        message: str,
        line: Optional[int] = None,
        component: Optional[str] = None,
    ):
        self.kind = kind
        self.component = component
        super().__init__(f"{kind.value}: {message}", line)


class ICSValueError(ICSParseError, ValueError):
    """Exception raised when a property value does not match its type."""

    def __init__(
        self,
        kind: ValueErrorKind,
        text: str,
        detail: Optional[str] = None,
        line: Optional[int] = None,
        property_name: Optional[str] = None,
    ):
        self.kind = kind
        self.text = text
        self.detail = detail
        self.property_name = property_name
        message = f"{kind.value}: {text!r}"
        if detail:
            message = f"{message} ({detail})"
        if property_name:
            message = f"{property_name}: {message}"
        super().__init__(message, line)

    def at(self, line: Optional[int], property_name: Optional[str]) -> "ICSValueError":
        """Return a copy of this error located at a content line."""
        return ICSValueError(self.kind, self.text, self.detail, line, property_name)


class ICSContentTooLargeError(ICSParseError):
    """Raised when ICS content exceeds size limits."""


def _with_position(message: str, line: Optional[int], column: Optional[int]) -> str:
    if line is None:
        return message
    if column is None:
        return f"line {line}: {message}"
    return f"line {line}, column {column}: {message}"
