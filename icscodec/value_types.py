"""Data models for typed ICS property values."""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ValueType(str, Enum):
    """Recognized value types, named by their VALUE parameter token."""

    TEXT = "TEXT"
    DATE = "DATE"
    DATE_TIME = "DATE-TIME"
    DURATION = "DURATION"
    PERIOD = "PERIOD"
    RECUR = "RECUR"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    URI = "URI"
    CAL_ADDRESS = "CAL-ADDRESS"
    UTC_OFFSET = "UTC-OFFSET"
    BINARY = "BINARY"
    GEO = "GEO"
    RAW = "RAW"

    @classmethod
    def from_token(cls, token: str) -> Optional["ValueType"]:
        """Resolve a VALUE parameter token; None for unrecognized tokens.

        GEO and RAW are internal and cannot be selected from the wire.
        """
        try:
            value_type = cls(token.upper())
        except ValueError:
            return None
        if value_type in (cls.GEO, cls.RAW):
            return None
        return value_type


class TimeForm(str, Enum):
    """How a DATE-TIME value is anchored."""

    UTC = "utc"
    ZONED = "zoned"  # local time in the zone named by the TZID parameter
    FLOATING = "floating"  # local time of whoever observes it; left unresolved


class DateTimeValue(BaseModel):
    """A DATE-TIME value with an explicit anchoring tag.

    Floating and zoned values are never converted: the TZID is carried as a
    reference string and resolving it is up to the caller.
    """

    value: datetime = Field(..., description="Naive wall-clock date and time")
    form: TimeForm = TimeForm.FLOATING
    tzid: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_form(self) -> "DateTimeValue":
        if self.value.tzinfo is not None:
            raise ValueError("DateTimeValue.value must be naive; use form/tzid instead")
        if self.form == TimeForm.ZONED and not self.tzid:
            raise ValueError("zoned date-time requires a tzid")
        if self.form != TimeForm.ZONED and self.tzid:
            raise ValueError("only zoned date-times carry a tzid")
        return self

    @classmethod
    def utc(cls, value: datetime) -> "DateTimeValue":
        """Build a UTC value from a naive or aware datetime."""
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return cls(value=value, form=TimeForm.UTC)

    @classmethod
    def floating(cls, value: datetime) -> "DateTimeValue":
        return cls(value=value, form=TimeForm.FLOATING)

    @classmethod
    def zoned(cls, value: datetime, tzid: str) -> "DateTimeValue":
        return cls(value=value, form=TimeForm.ZONED, tzid=tzid)

    @property
    def is_utc(self) -> bool:
        return self.form == TimeForm.UTC

    @property
    def is_floating(self) -> bool:
        return self.form == TimeForm.FLOATING

    def to_datetime(self) -> datetime:
        """Return an aware datetime for UTC values, the naive value otherwise."""
        if self.form == TimeForm.UTC:
            return self.value.replace(tzinfo=timezone.utc)
        return self.value


class Duration(BaseModel):
    """A nominal/exact duration as written: weeks, or days plus a time part."""

    negative: bool = False
    weeks: int = Field(default=0, ge=0)
    days: int = Field(default=0, ge=0)
    hours: int = Field(default=0, ge=0)
    minutes: int = Field(default=0, ge=0)
    seconds: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_shape(self) -> "Duration":
        if self.weeks and (self.days or self.hours or self.minutes or self.seconds):
            raise ValueError("week durations cannot carry day or time parts")
        return self

    def to_timedelta(self) -> timedelta:
        delta = timedelta(
            weeks=self.weeks,
            days=self.days,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
        )
        return -delta if self.negative else delta

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> "Duration":
        """Build the canonical day/time form of a timedelta (whole seconds)."""
        negative = delta < timedelta(0)
        total = int(abs(delta).total_seconds())
        days, rest = divmod(total, 86400)
        hours, rest = divmod(rest, 3600)
        minutes, seconds = divmod(rest, 60)
        if days and not (hours or minutes or seconds) and days % 7 == 0:
            return cls(negative=negative, weeks=days // 7)
        return cls(
            negative=negative, days=days, hours=hours, minutes=minutes, seconds=seconds
        )


class Period(BaseModel):
    """A PERIOD value: explicit start/end or start plus duration."""

    start: DateTimeValue
    end: Optional[DateTimeValue] = None
    duration: Optional[Duration] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_end(self) -> "Period":
        if (self.end is None) == (self.duration is None):
            raise ValueError("a period has exactly one of end or duration")
        return self


class Frequency(str, Enum):
    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"


class WeekdayNum(BaseModel):
    """A BYDAY entry: optional signed ordinal and a weekday, e.g. ``-1SU``."""

    weekday: Weekday
    ordinal: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class Recur(BaseModel):
    """A parsed recurrence rule. Occurrences are never expanded here."""

    freq: Frequency
    until: Optional[Union[DateTimeValue, date]] = None
    count: Optional[int] = None
    interval: Optional[int] = None
    by_second: list[int] = Field(default_factory=list)
    by_minute: list[int] = Field(default_factory=list)
    by_hour: list[int] = Field(default_factory=list)
    by_day: list[WeekdayNum] = Field(default_factory=list)
    by_month_day: list[int] = Field(default_factory=list)
    by_year_day: list[int] = Field(default_factory=list)
    by_week_no: list[int] = Field(default_factory=list)
    by_month: list[int] = Field(default_factory=list)
    by_set_pos: list[int] = Field(default_factory=list)
    wkst: Optional[Weekday] = None
    extras: list[tuple[str, str]] = Field(
        default_factory=list, description="Unrecognized rule parts, in order"
    )


class UtcOffset(BaseModel):
    """A UTC-OFFSET value in seconds east of UTC."""

    seconds: int = Field(..., gt=-86400, lt=86400)

    model_config = ConfigDict(frozen=True)

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds)


class Geo(BaseModel):
    """A GEO value: latitude and longitude in decimal degrees."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    model_config = ConfigDict(frozen=True)
