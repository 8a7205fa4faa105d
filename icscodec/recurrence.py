"""RECUR value parsing and formatting.

Rules are parsed and structurally validated only; expanding a rule into an
occurrence sequence is left to the caller.
"""

import logging
import re
from datetime import date
from typing import Optional, Union

from .exceptions import ICSValueError, ValueErrorKind
from .value_codecs import format_date, format_date_time, parse_date, parse_date_time
from .value_types import DateTimeValue, Frequency, Recur, Weekday, WeekdayNum

logger = logging.getLogger(__name__)

_BYDAY_RE = re.compile(r"([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)", re.IGNORECASE | re.ASCII)
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DIGITS_RE = re.compile(r"\d+", re.ASCII)

# (field name, lowest, highest, negative values allowed)
_INT_LIST_PARTS: dict[str, tuple[str, int, int, bool]] = {
    "BYSECOND": ("by_second", 0, 60, False),
    "BYMINUTE": ("by_minute", 0, 59, False),
    "BYHOUR": ("by_hour", 0, 23, False),
    "BYMONTHDAY": ("by_month_day", 1, 31, True),
    "BYYEARDAY": ("by_year_day", 1, 366, True),
    "BYWEEKNO": ("by_week_no", 1, 53, True),
    "BYMONTH": ("by_month", 1, 12, False),
    "BYSETPOS": ("by_set_pos", 1, 366, True),
}

# Output order after FREQ
_PART_ORDER = [
    "UNTIL",
    "COUNT",
    "INTERVAL",
    "BYSECOND",
    "BYMINUTE",
    "BYHOUR",
    "BYDAY",
    "BYMONTHDAY",
    "BYYEARDAY",
    "BYWEEKNO",
    "BYMONTH",
    "BYSETPOS",
    "WKST",
]


def _bad(raw: str, detail: str) -> ICSValueError:
    return ICSValueError(ValueErrorKind.BAD_RECUR, raw, detail)


def _parse_positive(raw: str, key: str, value: str) -> int:
    if not _DIGITS_RE.fullmatch(value) or int(value) < 1:
        raise _bad(raw, f"{key} must be a positive integer")
    return int(value)


def _parse_int_list(raw: str, key: str, value: str) -> list[int]:
    _, low, high, signed = _INT_LIST_PARTS[key]
    numbers: list[int] = []
    for item in value.split(","):
        if not _INTEGER_RE.fullmatch(item):
            raise _bad(raw, f"{key} expects integers, got {item!r}")
        number = int(item)
        magnitude = abs(number) if signed else number
        if (number < 0 and not signed) or not low <= magnitude <= high:
            raise _bad(raw, f"{key} value {number} out of range")
        numbers.append(number)
    return numbers


def _parse_weekday(raw: str, key: str, value: str) -> Weekday:
    try:
        return Weekday(value.upper())
    except ValueError as e:
        raise _bad(raw, f"{key} expects a weekday code, got {value!r}") from e


def _parse_by_day(raw: str, value: str) -> list[WeekdayNum]:
    entries: list[WeekdayNum] = []
    for item in value.split(","):
        match = _BYDAY_RE.fullmatch(item)
        if not match:
            raise _bad(raw, f"BYDAY entry {item!r} is not [+/-n]weekday")
        ordinal: Optional[int] = None
        if match.group(1):
            ordinal = int(match.group(1))
            if ordinal == 0 or abs(ordinal) > 53:
                raise _bad(raw, f"BYDAY ordinal {ordinal} out of range")
        entries.append(WeekdayNum(weekday=Weekday(match.group(2).upper()), ordinal=ordinal))
    return entries


def _parse_until(raw: str, value: str) -> Union[DateTimeValue, date]:
    try:
        if "T" in value.upper():
            return parse_date_time(value)
        return parse_date(value)
    except ICSValueError as e:
        raise _bad(raw, f"UNTIL: {e.message}") from e


def parse_recur(raw: str) -> Recur:
    """Parse ``FREQ=...;key=value;...`` into a ``Recur``.

    Keys are case-insensitive. Unknown rule parts are kept in ``extras`` in
    the order they appeared.

    Raises:
        ICSValueError: BAD_RECUR on missing FREQ, malformed or repeated parts,
            out-of-range values, or COUNT combined with UNTIL
    """
    fields: dict[str, object] = {}
    extras: list[tuple[str, str]] = []
    seen: set[str] = set()

    for part in raw.split(";"):
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep or not key:
            raise _bad(raw, f"rule part {part!r} is not KEY=VALUE")
        upper_key = key.upper()
        if upper_key in seen:
            raise _bad(raw, f"rule part {upper_key} appears more than once")
        seen.add(upper_key)
        if not value:
            raise _bad(raw, f"rule part {upper_key} has no value")

        if upper_key == "FREQ":
            try:
                fields["freq"] = Frequency(value.upper())
            except ValueError as e:
                raise _bad(raw, f"unknown FREQ {value!r}") from e
        elif upper_key == "UNTIL":
            fields["until"] = _parse_until(raw, value)
        elif upper_key == "COUNT":
            fields["count"] = _parse_positive(raw, upper_key, value)
        elif upper_key == "INTERVAL":
            fields["interval"] = _parse_positive(raw, upper_key, value)
        elif upper_key == "BYDAY":
            fields["by_day"] = _parse_by_day(raw, value)
        elif upper_key == "WKST":
            fields["wkst"] = _parse_weekday(raw, upper_key, value)
        elif upper_key in _INT_LIST_PARTS:
            fields[_INT_LIST_PARTS[upper_key][0]] = _parse_int_list(raw, upper_key, value)
        else:
            logger.debug(f"Keeping unrecognized RRULE part {key}={value}")
            extras.append((key, value))

    if "freq" not in fields:
        raise _bad(raw, "FREQ is required")
    if "count" in fields and "until" in fields:
        raise _bad(raw, "COUNT and UNTIL are mutually exclusive")

    return Recur(extras=extras, **fields)  # type: ignore[arg-type]


def _format_by_day(entries: list[WeekdayNum]) -> str:
    return ",".join(
        f"{entry.ordinal if entry.ordinal is not None else ''}{entry.weekday.value}"
        for entry in entries
    )


def format_recur(value: Recur) -> str:
    """Format a ``Recur`` with FREQ first, known parts in RFC order, extras last."""
    parts = [f"FREQ={value.freq.value}"]
    for key in _PART_ORDER:
        if key == "UNTIL" and value.until is not None:
            if isinstance(value.until, DateTimeValue):
                parts.append(f"UNTIL={format_date_time(value.until)}")
            else:
                parts.append(f"UNTIL={format_date(value.until)}")
        elif key == "COUNT" and value.count is not None:
            parts.append(f"COUNT={value.count}")
        elif key == "INTERVAL" and value.interval is not None:
            parts.append(f"INTERVAL={value.interval}")
        elif key == "BYDAY" and value.by_day:
            parts.append(f"BYDAY={_format_by_day(value.by_day)}")
        elif key == "WKST" and value.wkst is not None:
            parts.append(f"WKST={value.wkst.value}")
        elif key in _INT_LIST_PARTS:
            numbers = getattr(value, _INT_LIST_PARTS[key][0])
            if numbers:
                parts.append(f"{key}={','.join(str(n) for n in numbers)}")
    parts.extend(f"{key}={extra}" for key, extra in value.extras)
    return ";".join(parts)
