"""Component assembler: builds the calendar tree from content lines."""

import logging
from enum import Enum
from typing import Optional

from .config import CodecSettings, get_settings
from .exceptions import (
    ICSContentTooLargeError,
    ICSParseError,
    ICSStructuralError,
    ICSValueError,
    StructuralErrorKind,
)
from .folding import unfold
from .models import Calendar, Component, Parameter, Property, Value
from .schema import CHILD_KINDS, Cardinality, ComponentKind, lookup, resolve_value_type
from .tokenizer import ContentLine, find_param, tokenize
from .value_codecs import parse_items
from .value_types import ValueType

logger = logging.getLogger(__name__)

_ALARM_PARENTS = frozenset({ComponentKind.VEVENT, ComponentKind.VTODO})


class ParserState(str, Enum):
    """Where the assembler is relative to the VCALENDAR block."""

    OUTSIDE = "outside"  # before BEGIN:VCALENDAR
    IN_CALENDAR = "in_calendar"  # directly inside VCALENDAR
    IN_COMPONENT = "in_component"  # inside a nested component
    CLOSED = "closed"  # after END:VCALENDAR


class ICSParser:
    """Parser turning ICS text into a ``Calendar``.

    Consumes logical lines one at a time and keeps an explicit stack of open
    components. The first syntax, structural or value error aborts the parse.
    """

    def __init__(self, settings: Optional[CodecSettings] = None) -> None:
        """Initialize ICS parser.

        Args:
            settings: Codec settings; the process-wide defaults when omitted
        """
        self.settings = settings or get_settings()
        logger.debug("ICS parser initialized")

    def parse(self, text: str) -> Calendar:
        """Parse ICS text into a calendar tree.

        Args:
            text: Whole document, CRLF, LF or CR line endings

        Returns:
            The single VCALENDAR of the document

        Raises:
            ICSContentTooLargeError: If the text exceeds ``max_input_bytes``
            ICSSyntaxError: On malformed physical or content lines
            ICSStructuralError: On illegal nesting or missing calendar
            ICSValueError: When a property value does not match its type
        """
        if text is None:
            raise TypeError("ICS content cannot be None")
        self._validate_size(text)

        if not text.strip():
            logger.warning("Empty ICS content provided")
            raise ICSStructuralError(StructuralErrorKind.MISSING_CALENDAR, "ICS content is empty")

        try:
            return self._assemble(text)
        except ICSParseError as e:
            logger.warning(f"Failed to parse ICS content: {e}")
            raise

    def _validate_size(self, text: str) -> None:
        size_bytes = len(text.encode("utf-8"))

        if size_bytes > self.settings.max_input_bytes:
            logger.error(
                f"ICS content too large: {size_bytes} bytes exceeds "
                f"{self.settings.max_input_bytes} limit",
            )
            raise ICSContentTooLargeError(
                f"ICS content too large: {size_bytes} bytes exceeds "
                f"{self.settings.max_input_bytes} limit",
            )

        if size_bytes > self.settings.warn_input_bytes:
            logger.warning(
                f"Large ICS content detected: {size_bytes} bytes "
                f"(threshold: {self.settings.warn_input_bytes})",
            )

    def _assemble(self, text: str) -> Calendar:
        state = ParserState.OUTSIDE
        calendar: Optional[Calendar] = None
        stack: list[Component] = []
        open_lines: list[int] = []

        for logical in unfold(text):
            line = tokenize(logical.text, logical.line_number)
            keyword = line.name.upper()

            if keyword == "BEGIN":
                name = line.value
                kind = ComponentKind.from_name(name)
                self._check_begin(state, stack, name, kind, line.line_number)
                if kind == ComponentKind.VCALENDAR:
                    calendar = Calendar(name=name)
                    stack.append(calendar)
                    state = ParserState.IN_CALENDAR
                else:
                    child = Component(kind=kind, name=name)
                    stack[-1].components.append(child)
                    stack.append(child)
                    state = ParserState.IN_COMPONENT
                open_lines.append(line.line_number)

            elif keyword == "END":
                self._check_end(stack, line)
                stack.pop()
                open_lines.pop()
                if not stack:
                    state = ParserState.CLOSED
                elif len(stack) == 1:
                    state = ParserState.IN_CALENDAR

            elif state in (ParserState.OUTSIDE, ParserState.CLOSED):
                raise ICSStructuralError(
                    StructuralErrorKind.CONTENT_OUTSIDE_CALENDAR,
                    f"property {line.name} outside BEGIN:VCALENDAR/END:VCALENDAR",
                    line=line.line_number,
                )

            else:
                component = stack[-1]
                prop = self._build_property(component.kind, line)
                self._check_duplicate(component, prop, line.line_number)
                component.properties.append(prop)

        if stack:
            raise ICSStructuralError(
                StructuralErrorKind.UNTERMINATED_COMPONENT,
                f"{stack[-1].name} opened here is never closed",
                line=open_lines[-1],
                component=stack[-1].name,
            )
        if calendar is None:
            raise ICSStructuralError(
                StructuralErrorKind.MISSING_CALENDAR, "no BEGIN:VCALENDAR found"
            )

        logger.debug(
            f"Parsed calendar with {len(calendar.properties)} properties and "
            f"{len(calendar.components)} components"
        )
        return calendar

    def _check_begin(
        self,
        state: ParserState,
        stack: list[Component],
        name: str,
        kind: ComponentKind,
        line_number: int,
    ) -> None:
        if not name:
            raise ICSStructuralError(
                StructuralErrorKind.MISPLACED_COMPONENT,
                "BEGIN without a component name",
                line=line_number,
            )

        if kind == ComponentKind.VCALENDAR:
            if state != ParserState.OUTSIDE:
                raise ICSStructuralError(
                    StructuralErrorKind.MISPLACED_COMPONENT,
                    "only one VCALENDAR is allowed per document",
                    line=line_number,
                    component=name,
                )
            return

        parent = stack[-1] if stack else None
        if kind == ComponentKind.VALARM:
            if parent is None or parent.kind not in _ALARM_PARENTS:
                where = parent.name if parent is not None else "top level"
                raise ICSStructuralError(
                    StructuralErrorKind.MISPLACED_ALARM,
                    f"VALARM must be nested in VEVENT or VTODO, found in {where}",
                    line=line_number,
                    component=name,
                )
            return

        if parent is None:
            if state == ParserState.CLOSED:
                raise ICSStructuralError(
                    StructuralErrorKind.CONTENT_OUTSIDE_CALENDAR,
                    f"BEGIN:{name} after END:VCALENDAR",
                    line=line_number,
                    component=name,
                )
            raise ICSStructuralError(
                StructuralErrorKind.MISPLACED_COMPONENT,
                f"{name} must be nested in VCALENDAR",
                line=line_number,
                component=name,
            )

        if kind == ComponentKind.UNKNOWN or parent.kind == ComponentKind.UNKNOWN:
            return
        if kind not in CHILD_KINDS.get(parent.kind, frozenset()):
            raise ICSStructuralError(
                StructuralErrorKind.MISPLACED_COMPONENT,
                f"{name} cannot be nested in {parent.name}",
                line=line_number,
                component=name,
            )

    def _check_end(self, stack: list[Component], line: ContentLine) -> None:
        if not stack:
            raise ICSStructuralError(
                StructuralErrorKind.UNMATCHED_END,
                f"END:{line.value} without a matching BEGIN",
                line=line.line_number,
                component=line.value,
            )
        if line.value.upper() != stack[-1].name.upper():
            raise ICSStructuralError(
                StructuralErrorKind.UNMATCHED_END,
                f"END:{line.value} does not close {stack[-1].name}",
                line=line.line_number,
                component=line.value,
            )

    def _build_property(self, kind: ComponentKind, line: ContentLine) -> Property:
        params = [Parameter(name=name, values=values) for name, values in line.params]

        if kind == ComponentKind.UNKNOWN:
            # Unknown components are retained verbatim
            return Property(name=line.name, params=params, value=Value.of(ValueType.RAW, line.value))

        spec = lookup(kind, line.name)
        value_param = find_param(line.params, "VALUE")
        tzid_param = find_param(line.params, "TZID")
        tzid = tzid_param[0] if tzid_param else None

        try:
            value_type = resolve_value_type(spec, value_param[0] if value_param else None, line.value)
            items = parse_items(value_type, line.value, spec.multi_valued, tzid)
        except ICSValueError as e:
            raise e.at(line.line_number, line.name.upper()) from e

        if not spec.known:
            logger.debug(f"Keeping extension property {line.name} as {value_type.value}")
        return Property(name=line.name, params=params, value=Value(type=value_type, items=items))

    def _check_duplicate(self, component: Component, prop: Property, line_number: int) -> None:
        if not self.settings.strict_duplicates:
            return
        spec = lookup(component.kind, prop.key)
        if spec.cardinality == Cardinality.REQUIRED and component.has(prop.key):
            raise ICSStructuralError(
                StructuralErrorKind.DUPLICATE_REQUIRED_PROPERTY,
                f"{prop.key} appears more than once in {component.name}",
                line=line_number,
                component=component.name,
            )


def parse(text: str, settings: Optional[CodecSettings] = None) -> Calendar:
    """Parse ICS text with a fresh ``ICSParser``."""
    return ICSParser(settings).parse(text)
