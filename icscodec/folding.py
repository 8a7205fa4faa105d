"""Line unfolding and folding for ICS content.

Physical lines on the wire are limited in length; a logical content line is
continued on the next physical line by starting that line with a single
space or horizontal tab. Unfolding removes the line break and that one
whitespace character; folding is its inverse.
"""

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from .config import CRLF, FOLD_WIDTH
from .exceptions import ICSSyntaxError, SyntaxErrorKind

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_CONTINUATION_CHARS = (" ", "\t")
_FOLD_INDENT = " "
_BOM = "\ufeff"


class LogicalLine(NamedTuple):
    """An unfolded content line and the physical line it started on."""

    text: str
    line_number: int


def iter_physical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (1-based line number, line) pairs, accepting CRLF, LF or CR."""
    if text.startswith(_BOM):
        text = text[1:]
    pos = 0
    number = 0
    for match in _LINE_BREAK_RE.finditer(text):
        number += 1
        yield number, text[pos : match.start()]
        pos = match.end()
    if pos < len(text):
        yield number + 1, text[pos:]


def unfold(text: str) -> Iterator[LogicalLine]:
    """Transform a physical-line stream into logical lines.

    Lines are produced incrementally so the assembler can consume them one at
    a time. Blank logical lines are skipped.

    Raises:
        ICSSyntaxError: If a continuation line has no preceding logical line
    """
    current: list[str] = []
    start = 0

    for number, physical in iter_physical_lines(text):
        if physical[:1] in _CONTINUATION_CHARS:
            if not current:
                raise ICSSyntaxError(
                    SyntaxErrorKind.UNTERMINATED_LINE,
                    "continuation line without a preceding content line",
                    line=number,
                    column=0,
                )
            current.append(physical[1:])
            continue

        if current:
            yield LogicalLine("".join(current), start)
        if physical:
            current = [physical]
            start = number
        else:
            current = []

    if current:
        yield LogicalLine("".join(current), start)


def fold(line: str, width: int = FOLD_WIDTH) -> list[str]:
    """Split a logical line into physical lines of at most ``width`` octets.

    Continuation lines start with a single space, which counts toward the
    width. Multi-byte UTF-8 sequences are never split.
    """
    if len(line.encode("utf-8")) <= width:
        return [line]

    physical: list[str] = []
    chunk: list[str] = []
    size = 0
    limit = width

    for char in line:
        char_size = len(char.encode("utf-8"))
        if size + char_size > limit and chunk:
            physical.append("".join(chunk))
            chunk = [_FOLD_INDENT]
            size = len(_FOLD_INDENT)
        chunk.append(char)
        size += char_size

    if chunk:
        physical.append("".join(chunk))

    return physical


def fold_lines(lines: Iterable[str], width: int = FOLD_WIDTH) -> str:
    """Fold every logical line and join them with CRLF, including a final CRLF."""
    out: list[str] = []
    for line in lines:
        out.extend(fold(line, width))
    if not out:
        return ""
    return CRLF.join(out) + CRLF
