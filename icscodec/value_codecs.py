"""Parsers and formatters for ICS property value types.

Every parser takes the raw value text and raises ``ICSValueError`` naming the
expected type. Every formatter is a left inverse of its parser: formatting a
parsed value and parsing the result gives back an equal value, although the
text may differ cosmetically from what was originally read.
"""

import base64
import binascii
import re
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import ValidationError

from .exceptions import ICSValueError, ValueErrorKind
from .tokenizer import escape_text, split_unescaped, unescape_text
from .value_types import DateTimeValue, Duration, Geo, Period, TimeForm, UtcOffset, ValueType

_DATE_RE = re.compile(r"(\d{4})(\d{2})(\d{2})", re.ASCII)
_DATE_TIME_RE = re.compile(r"(\d{4})(\d{2})(\d{2})[Tt](\d{2})(\d{2})(\d{2})([Zz]?)", re.ASCII)
_DURATION_RE = re.compile(
    r"([+-])?P(?:(\d+)W|(\d+)D(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?|T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)",
    re.IGNORECASE | re.ASCII,
)
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?\d+(?:\.\d+)?", re.ASCII)
_URI_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:[^\x00-\x1f\x7f]+")
_UTC_OFFSET_RE = re.compile(r"([+-])(\d{2})(\d{2})(\d{2})?", re.ASCII)


# TEXT


def parse_text(raw: str) -> str:
    return unescape_text(raw)


def format_text(value: str) -> str:
    return escape_text(value)


# DATE


def parse_date(raw: str) -> date:
    """Parse ``YYYYMMDD`` into a real calendar date."""
    match = _DATE_RE.fullmatch(raw)
    if not match:
        raise ICSValueError(ValueErrorKind.BAD_DATE, raw, "expected YYYYMMDD")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as e:
        raise ICSValueError(ValueErrorKind.BAD_DATE, raw, str(e)) from e


def format_date(value: date) -> str:
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


# DATE-TIME


def parse_date_time(raw: str, tzid: Optional[str] = None) -> DateTimeValue:
    """Parse ``YYYYMMDDTHHMMSS[Z]``.

    A trailing ``Z`` marks UTC; otherwise a TZID parameter makes the value
    zoned, and without either the value is floating.
    """
    match = _DATE_TIME_RE.fullmatch(raw)
    if not match:
        raise ICSValueError(ValueErrorKind.BAD_DATE_TIME, raw, "expected YYYYMMDDTHHMMSS[Z]")
    try:
        value = datetime(*(int(match.group(i)) for i in range(1, 7)))
    except ValueError as e:
        raise ICSValueError(ValueErrorKind.BAD_DATE_TIME, raw, str(e)) from e

    if match.group(7):
        if tzid:
            raise ICSValueError(
                ValueErrorKind.BAD_DATE_TIME, raw, f"UTC value cannot also carry TZID={tzid}"
            )
        return DateTimeValue(value=value, form=TimeForm.UTC)
    if tzid:
        return DateTimeValue(value=value, form=TimeForm.ZONED, tzid=tzid)
    return DateTimeValue(value=value, form=TimeForm.FLOATING)


def format_date_time(value: DateTimeValue) -> str:
    v = value.value
    text = (
        f"{v.year:04d}{v.month:02d}{v.day:02d}"
        f"T{v.hour:02d}{v.minute:02d}{v.second:02d}"
    )
    if value.form == TimeForm.UTC:
        text += "Z"
    return text


# DURATION


def parse_duration(raw: str) -> Duration:
    """Parse ``[+-]PnW`` or ``[+-]P[nD][T[nH][nM][nS]]``."""
    match = _DURATION_RE.fullmatch(raw)
    if not match:
        raise ICSValueError(ValueErrorKind.BAD_DURATION, raw)
    sign, weeks, days, hours, minutes, seconds, t_hours, t_minutes, t_seconds = match.groups()

    if days is None and weeks is None:
        # Time-only form: at least one of H, M, S after the T
        hours, minutes, seconds = t_hours, t_minutes, t_seconds
        if hours is None and minutes is None and seconds is None:
            raise ICSValueError(ValueErrorKind.BAD_DURATION, raw, "empty time part")
    elif days is not None and "T" in raw.upper():
        if hours is None and minutes is None and seconds is None:
            raise ICSValueError(ValueErrorKind.BAD_DURATION, raw, "empty time part")

    return Duration(
        negative=sign == "-",
        weeks=int(weeks or 0),
        days=int(days or 0),
        hours=int(hours or 0),
        minutes=int(minutes or 0),
        seconds=int(seconds or 0),
    )


def format_duration(value: Duration) -> str:
    parts = ["-P" if value.negative else "P"]
    if value.weeks:
        parts.append(f"{value.weeks}W")
        return "".join(parts)
    if value.days:
        parts.append(f"{value.days}D")
    if value.hours or value.minutes or value.seconds:
        parts.append("T")
        if value.hours:
            parts.append(f"{value.hours}H")
        if value.minutes:
            parts.append(f"{value.minutes}M")
        if value.seconds:
            parts.append(f"{value.seconds}S")
    if len(parts) == 1:
        parts.append("T0S")
    return "".join(parts)


# PERIOD


def parse_period(raw: str, tzid: Optional[str] = None) -> Period:
    """Parse ``start/end`` or ``start/duration``."""
    start_text, sep, end_text = raw.partition("/")
    if not sep or not start_text or not end_text:
        raise ICSValueError(ValueErrorKind.BAD_PERIOD, raw, "expected start/end or start/duration")
    try:
        start = parse_date_time(start_text, tzid)
        if end_text.lstrip("+-")[:1].upper() == "P":
            return Period(start=start, duration=parse_duration(end_text))
        return Period(start=start, end=parse_date_time(end_text, tzid))
    except ICSValueError as e:
        raise ICSValueError(ValueErrorKind.BAD_PERIOD, raw, e.message) from e


def format_period(value: Period) -> str:
    if value.duration is not None:
        return f"{format_date_time(value.start)}/{format_duration(value.duration)}"
    assert value.end is not None
    return f"{format_date_time(value.start)}/{format_date_time(value.end)}"


# INTEGER, FLOAT, BOOLEAN


def parse_integer(raw: str) -> int:
    if not _INTEGER_RE.fullmatch(raw):
        raise ICSValueError(ValueErrorKind.BAD_INTEGER, raw)
    return int(raw)


def format_integer(value: int) -> str:
    return str(int(value))


def parse_float(raw: str) -> float:
    if not _FLOAT_RE.fullmatch(raw):
        raise ICSValueError(ValueErrorKind.BAD_FLOAT, raw)
    return float(raw)


def format_float(value: float) -> str:
    """Render a float in plain decimal notation (no exponent)."""
    if value != value or value in (float("inf"), float("-inf")):
        raise ICSValueError(ValueErrorKind.BAD_FLOAT, repr(value), "not a finite number")
    text = format(Decimal(repr(float(value))), "f")
    if "." not in text:
        text += ".0"
    return text


def parse_boolean(raw: str) -> bool:
    upper = raw.upper()
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    raise ICSValueError(ValueErrorKind.BAD_BOOLEAN, raw, "expected TRUE or FALSE")


def format_boolean(value: bool) -> str:
    return "TRUE" if value else "FALSE"


# URI, CAL-ADDRESS


def parse_uri(raw: str) -> str:
    if not _URI_RE.fullmatch(raw):
        raise ICSValueError(ValueErrorKind.BAD_URI, raw, "expected scheme:rest")
    return raw


def parse_cal_address(raw: str) -> str:
    if not _URI_RE.fullmatch(raw):
        raise ICSValueError(ValueErrorKind.BAD_CAL_ADDRESS, raw, "expected scheme:rest")
    return raw


def format_verbatim(value: str) -> str:
    return value


# UTC-OFFSET


def parse_utc_offset(raw: str) -> UtcOffset:
    """Parse ``(+|-)HHMM[SS]``; ``-0000`` is not a legal offset."""
    match = _UTC_OFFSET_RE.fullmatch(raw)
    if not match:
        raise ICSValueError(ValueErrorKind.BAD_UTC_OFFSET, raw, "expected +HHMM[SS]")
    sign, hours, minutes, seconds = match.groups()
    h, m, s = int(hours), int(minutes), int(seconds or 0)
    if h > 23 or m > 59 or s > 59:
        raise ICSValueError(ValueErrorKind.BAD_UTC_OFFSET, raw, "offset out of range")
    total = h * 3600 + m * 60 + s
    if sign == "-" and total == 0:
        raise ICSValueError(ValueErrorKind.BAD_UTC_OFFSET, raw, "negative zero offset")
    return UtcOffset(seconds=-total if sign == "-" else total)


def format_utc_offset(value: UtcOffset) -> str:
    sign = "-" if value.seconds < 0 else "+"
    total = abs(value.seconds)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{sign}{hours:02d}{minutes:02d}"
    if seconds:
        text += f"{seconds:02d}"
    return text


# BINARY


def parse_binary(raw: str) -> bytes:
    """Decode a base64 payload; BASE64 is the only defined encoding."""
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ICSValueError(ValueErrorKind.BAD_BINARY, raw[:40], "invalid base64") from e


def format_binary(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


# GEO


def parse_geo(raw: str) -> Geo:
    """Parse ``latitude;longitude``."""
    parts = raw.split(";")
    if len(parts) != 2:
        raise ICSValueError(ValueErrorKind.BAD_GEO, raw, "expected latitude;longitude")
    try:
        return Geo(latitude=parse_float(parts[0]), longitude=parse_float(parts[1]))
    except ICSValueError as e:
        raise ICSValueError(ValueErrorKind.BAD_GEO, raw, e.message) from e
    except ValidationError as e:
        raise ICSValueError(ValueErrorKind.BAD_GEO, raw, "coordinates out of range") from e


def format_geo(value: Geo) -> str:
    return f"{format_float(value.latitude)};{format_float(value.longitude)}"


# Registry


def _parse_recur(raw: str) -> Any:
    from .recurrence import parse_recur

    return parse_recur(raw)


def _format_recur(value: Any) -> str:
    from .recurrence import format_recur

    return format_recur(value)


_PARSERS: dict[ValueType, Callable[[str], Any]] = {
    ValueType.TEXT: parse_text,
    ValueType.DATE: parse_date,
    ValueType.DURATION: parse_duration,
    ValueType.RECUR: _parse_recur,
    ValueType.INTEGER: parse_integer,
    ValueType.FLOAT: parse_float,
    ValueType.BOOLEAN: parse_boolean,
    ValueType.URI: parse_uri,
    ValueType.CAL_ADDRESS: parse_cal_address,
    ValueType.UTC_OFFSET: parse_utc_offset,
    ValueType.BINARY: parse_binary,
    ValueType.GEO: parse_geo,
    ValueType.RAW: format_verbatim,
}

_FORMATTERS: dict[ValueType, Callable[[Any], str]] = {
    ValueType.TEXT: format_text,
    ValueType.DATE: format_date,
    ValueType.DATE_TIME: format_date_time,
    ValueType.DURATION: format_duration,
    ValueType.PERIOD: format_period,
    ValueType.RECUR: _format_recur,
    ValueType.INTEGER: format_integer,
    ValueType.FLOAT: format_float,
    ValueType.BOOLEAN: format_boolean,
    ValueType.URI: format_verbatim,
    ValueType.CAL_ADDRESS: format_verbatim,
    ValueType.UTC_OFFSET: format_utc_offset,
    ValueType.BINARY: format_binary,
    ValueType.GEO: format_geo,
    ValueType.RAW: format_verbatim,
}


def parse_item(value_type: ValueType, raw: str, tzid: Optional[str] = None) -> Any:
    """Parse a single (non-list) value of the given type."""
    if value_type == ValueType.DATE_TIME:
        return parse_date_time(raw, tzid)
    if value_type == ValueType.PERIOD:
        return parse_period(raw, tzid)
    return _PARSERS[value_type](raw)


def format_item(value_type: ValueType, item: Any) -> str:
    """Format a single value of the given type."""
    return _FORMATTERS[value_type](item)


def parse_items(
    value_type: ValueType, raw: str, multi_valued: bool = False, tzid: Optional[str] = None
) -> list[Any]:
    """Parse a property value, splitting comma-separated lists when allowed."""
    if not multi_valued or value_type in (ValueType.RAW, ValueType.RECUR, ValueType.GEO):
        return [parse_item(value_type, raw, tzid)]
    if value_type == ValueType.TEXT:
        return [unescape_text(part) for part in split_unescaped(raw, ",")]
    return [parse_item(value_type, part, tzid) for part in raw.split(",")]


def format_items(value_type: ValueType, items: list[Any]) -> str:
    """Format a property value; list items are joined with commas."""
    return ",".join(format_item(value_type, item) for item in items)


def looks_like_date(raw: str) -> bool:
    """Return True for a bare ``YYYYMMDD`` string."""
    return _DATE_RE.fullmatch(raw) is not None
