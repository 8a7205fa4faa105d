"""Content-line tokenizer for ICS content.

Turns one logical line such as::

    DTSTART;TZID="America/New_York":20240101T090000

into a ``ContentLine`` with the name, the ordered parameter list and the raw
value slice. Value unescaping is left to the value codecs, which know whether
the property holds text.
"""

import re
from typing import NamedTuple, Optional

from .exceptions import ICSSyntaxError, ICSValueError, SyntaxErrorKind, ValueErrorKind

_NAME_RE = re.compile(r"[A-Za-z0-9-]+")
_UNSAFE_PARAM_CHARS_RE = re.compile(r"[:;,]")
_CONTROL_CHARS_RE = re.compile("[\x00-\x08\x0a-\x1f\x7f]")
_QUOTE = '"'

_ESCAPES = {
    "\\": "\\",
    ";": ";",
    ",": ",",
    "n": "\n",
    "N": "\n",
}


class ContentLine(NamedTuple):
    """A tokenized logical line."""

    name: str
    params: list[tuple[str, list[str]]]
    value: str
    line_number: int = 0


def _byte_offset(line: str, index: int) -> int:
    return len(line[:index].encode("utf-8"))


def _syntax_error(
    kind: SyntaxErrorKind, message: str, line: str, index: int, line_number: int
) -> ICSSyntaxError:
    return ICSSyntaxError(kind, message, line=line_number, column=_byte_offset(line, index))


def _scan_name(line: str, pos: int) -> int:
    """Return the index just past the name starting at ``pos``."""
    end = pos
    length = len(line)
    while end < length and line[end] not in ";:=,":
        end += 1
    return end


def tokenize(line: str, line_number: int = 0) -> ContentLine:
    """Parse one logical line into (name, parameters, raw value).

    Raises:
        ICSSyntaxError: On empty names, missing colons, unterminated quotes or
            malformed parameters
    """
    name_end = _scan_name(line, 0)
    name = line[:name_end]

    if name_end >= len(line):
        if not name:
            raise _syntax_error(
                SyntaxErrorKind.EMPTY_NAME, "content line has no name", line, 0, line_number
            )
        raise _syntax_error(
            SyntaxErrorKind.MISSING_COLON,
            f"expected ':' after {name!r}",
            line,
            name_end,
            line_number,
        )
    if not name:
        raise _syntax_error(
            SyntaxErrorKind.EMPTY_NAME, "content line has no name", line, 0, line_number
        )
    if not _NAME_RE.fullmatch(name):
        raise _syntax_error(
            SyntaxErrorKind.BAD_PARAMETER_SYNTAX,
            f"invalid property name {name!r}",
            line,
            0,
            line_number,
        )
    if line[name_end] not in ";:":
        raise _syntax_error(
            SyntaxErrorKind.MISSING_COLON,
            f"unexpected {line[name_end]!r} after property name",
            line,
            name_end,
            line_number,
        )

    params: list[tuple[str, list[str]]] = []
    pos = name_end
    while line[pos] == ";":
        pos += 1
        param_end = _scan_name(line, pos)
        param_name = line[pos:param_end]
        if param_end >= len(line):
            raise _syntax_error(
                SyntaxErrorKind.MISSING_COLON,
                "content line ended inside the parameter list",
                line,
                param_end,
                line_number,
            )
        if not param_name or not _NAME_RE.fullmatch(param_name) or line[param_end] != "=":
            raise _syntax_error(
                SyntaxErrorKind.BAD_PARAMETER_SYNTAX,
                f"expected NAME=VALUE parameter, got {line[pos:param_end + 1]!r}",
                line,
                pos,
                line_number,
            )
        pos = param_end + 1
        values, pos = _parse_param_values(line, pos, line_number)
        params.append((param_name, values))

    # pos now points at the ':' separating parameters from the value
    value = line[pos + 1 :]
    return ContentLine(name, params, value, line_number)


def _parse_param_values(line: str, pos: int, line_number: int) -> tuple[list[str], int]:
    """Parse ``pvalue *("," pvalue)``; return values and the delimiter index."""
    values: list[str] = []
    length = len(line)

    while True:
        if pos < length and line[pos] == _QUOTE:
            close = line.find(_QUOTE, pos + 1)
            if close == -1:
                raise _syntax_error(
                    SyntaxErrorKind.UNTERMINATED_QUOTE,
                    "quoted parameter value is not closed",
                    line,
                    pos,
                    line_number,
                )
            values.append(line[pos + 1 : close])
            pos = close + 1
            if pos < length and line[pos] not in ",;:":
                raise _syntax_error(
                    SyntaxErrorKind.BAD_PARAMETER_SYNTAX,
                    f"unexpected {line[pos]!r} after quoted parameter value",
                    line,
                    pos,
                    line_number,
                )
        else:
            end = pos
            while end < length and line[end] not in ",;:":
                if line[end] == _QUOTE:
                    raise _syntax_error(
                        SyntaxErrorKind.BAD_PARAMETER_SYNTAX,
                        "stray quote inside unquoted parameter value",
                        line,
                        end,
                        line_number,
                    )
                end += 1
            values.append(line[pos:end])
            pos = end

        if pos >= length:
            raise _syntax_error(
                SyntaxErrorKind.MISSING_COLON,
                "content line ended inside the parameter list",
                line,
                pos,
                line_number,
            )
        if line[pos] != ",":
            return values, pos
        pos += 1


# Text escaping


def escape_text(value: str) -> str:
    """Escape a TEXT value for the wire."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


def unescape_text(value: str) -> str:
    """Reverse TEXT escaping; unknown escapes are kept as written."""
    if "\\" not in value:
        return value
    out: list[str] = []
    i = 0
    length = len(value)
    while i < length:
        char = value[i]
        if char == "\\" and i + 1 < length and value[i + 1] in _ESCAPES:
            out.append(_ESCAPES[value[i + 1]])
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def split_unescaped(value: str, separator: str = ",") -> list[str]:
    """Split on separators that are not preceded by an escaping backslash."""
    parts: list[str] = []
    current: list[str] = []
    i = 0
    length = len(value)
    while i < length:
        char = value[i]
        if char == "\\" and i + 1 < length:
            current.append(value[i : i + 2])
            i += 2
            continue
        if char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


# Parameter and line serialization


def format_param_value(value: str) -> str:
    """Quote a parameter value only when it contains ':', ';' or ','."""
    if _QUOTE in value:
        raise ICSValueError(
            ValueErrorKind.BAD_PARAMETER, value, "parameter values cannot contain '\"'"
        )
    if _CONTROL_CHARS_RE.search(value):
        raise ICSValueError(
            ValueErrorKind.BAD_PARAMETER, value, "parameter values cannot contain control characters"
        )
    if _UNSAFE_PARAM_CHARS_RE.search(value):
        return f"{_QUOTE}{value}{_QUOTE}"
    return value


def format_content_line(
    name: str, params: list[tuple[str, list[str]]], value: str, upper: bool = True
) -> str:
    """Build ``name;p=v,v:value`` from already formatted pieces."""
    parts = [name.upper() if upper else name]
    for param_name, param_values in params:
        rendered = ",".join(format_param_value(v) for v in param_values)
        parts.append(f";{param_name.upper() if upper else param_name}={rendered}")
    parts.append(":")
    parts.append(value)
    return "".join(parts)


def find_param(params: list[tuple[str, list[str]]], name: str) -> Optional[list[str]]:
    """Return the values of the first parameter named ``name`` (case-insensitive)."""
    wanted = name.upper()
    for param_name, values in params:
        if param_name.upper() == wanted:
            return values
    return None
