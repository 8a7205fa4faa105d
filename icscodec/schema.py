"""Static property schema keyed by (component kind, property name).

Each entry gives the default value type, the alternative types a VALUE
parameter may select, the cardinality, whether the value is a
comma-separated list, the parameters the property defines, and optional
constraints on its value (enumerations, integer ranges) used by the
validator. Names missing from the table, including every ``X-`` name, fall
back to an extension entry: raw value, optional and repeatable.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .exceptions import ICSValueError, ValueErrorKind
from .value_codecs import looks_like_date
from .value_types import ValueType


class ComponentKind(str, Enum):
    """Component kinds with schema and nesting rules."""

    VCALENDAR = "VCALENDAR"
    VEVENT = "VEVENT"
    VTODO = "VTODO"
    VJOURNAL = "VJOURNAL"
    VFREEBUSY = "VFREEBUSY"
    VTIMEZONE = "VTIMEZONE"
    VALARM = "VALARM"
    STANDARD = "STANDARD"
    DAYLIGHT = "DAYLIGHT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_name(cls, name: str) -> "ComponentKind":
        """Resolve a BEGIN/END token case-insensitively; unrecognized names are UNKNOWN."""
        upper = name.upper()
        if upper == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(upper)
        except ValueError:
            return cls.UNKNOWN


class Cardinality(str, Enum):
    REQUIRED = "required"
    OPTIONAL_SINGLE = "optional_single"
    OPTIONAL_MULTIPLE = "optional_multiple"


@dataclass(frozen=True)
class PropertySpec:
    """Schema entry for one property in one component kind."""

    name: str
    value_type: ValueType
    cardinality: Cardinality = Cardinality.OPTIONAL_SINGLE
    alt_types: frozenset = frozenset()
    multi_valued: bool = False
    params: frozenset = frozenset()
    allowed_values: Optional[frozenset] = None
    extensible_values: bool = False  # X- tokens also accepted
    int_range: Optional[tuple[int, Optional[int]]] = None
    known: bool = True

    @property
    def repeatable(self) -> bool:
        return self.cardinality == Cardinality.OPTIONAL_MULTIPLE

    def allows_type(self, value_type: ValueType) -> bool:
        return value_type == self.value_type or value_type in self.alt_types


# Parameters

TEXT_PARAMS = frozenset({"ALTREP", "LANGUAGE"})
LANGUAGE_PARAMS = frozenset({"LANGUAGE"})
DATE_TIME_PARAMS = frozenset({"VALUE", "TZID"})
ADDRESS_PARAMS = frozenset(
    {
        "CUTYPE",
        "MEMBER",
        "ROLE",
        "PARTSTAT",
        "RSVP",
        "DELEGATED-TO",
        "DELEGATED-FROM",
        "SENT-BY",
        "CN",
        "DIR",
        "LANGUAGE",
        "EMAIL",
        "SCHEDULE-AGENT",
        "SCHEDULE-STATUS",
        "SCHEDULE-FORCE-SEND",
    }
)
ORGANIZER_PARAMS = frozenset(
    {"CN", "DIR", "SENT-BY", "LANGUAGE", "EMAIL", "SCHEDULE-AGENT", "SCHEDULE-STATUS"}
)
ATTACH_PARAMS = frozenset({"VALUE", "FMTTYPE", "ENCODING"})
IMAGE_PARAMS = frozenset({"VALUE", "FMTTYPE", "ENCODING", "DISPLAY", "ALTREP"})

# Parameters accepted on every property
GLOBAL_PARAMS = frozenset({"VALUE"})


# Builders

_R = Cardinality.REQUIRED
_S = Cardinality.OPTIONAL_SINGLE
_M = Cardinality.OPTIONAL_MULTIPLE

_DATE_OR_DATE_TIME = frozenset({ValueType.DATE})
_URI_OR_BINARY = frozenset({ValueType.BINARY})


def _text(name: str, cardinality: Cardinality = _S, params: frozenset = TEXT_PARAMS) -> PropertySpec:
    return PropertySpec(name, ValueType.TEXT, cardinality, params=params)


def _text_list(name: str, params: frozenset = LANGUAGE_PARAMS) -> PropertySpec:
    return PropertySpec(name, ValueType.TEXT, _M, multi_valued=True, params=params)


def _utc_stamp(name: str, cardinality: Cardinality = _S) -> PropertySpec:
    return PropertySpec(name, ValueType.DATE_TIME, cardinality)


def _date_or_time(name: str, cardinality: Cardinality = _S, extra: frozenset = frozenset()) -> PropertySpec:
    return PropertySpec(
        name,
        ValueType.DATE_TIME,
        cardinality,
        alt_types=_DATE_OR_DATE_TIME,
        params=DATE_TIME_PARAMS | extra,
    )


def _enum(
    name: str, values: set[str], extensible: bool = False, cardinality: Cardinality = _S
) -> PropertySpec:
    return PropertySpec(
        name,
        ValueType.TEXT,
        cardinality,
        allowed_values=frozenset(values),
        extensible_values=extensible,
    )


def _integer(name: str, low: int, high: Optional[int] = None) -> PropertySpec:
    return PropertySpec(name, ValueType.INTEGER, _S, int_range=(low, high))


CLASS = _enum("CLASS", {"PUBLIC", "PRIVATE", "CONFIDENTIAL"}, extensible=True)
CREATED = _utc_stamp("CREATED")
DTSTAMP = _utc_stamp("DTSTAMP", _R)
LAST_MODIFIED = _utc_stamp("LAST-MODIFIED")
UID_REQUIRED = _text("UID", _R, params=frozenset())
DTSTART = _date_or_time("DTSTART")
GEO = PropertySpec("GEO", ValueType.GEO)
ORGANIZER = PropertySpec("ORGANIZER", ValueType.CAL_ADDRESS, _S, params=ORGANIZER_PARAMS)
ATTENDEE = PropertySpec("ATTENDEE", ValueType.CAL_ADDRESS, _M, params=ADDRESS_PARAMS)
PRIORITY = _integer("PRIORITY", 0, 9)
SEQUENCE = _integer("SEQUENCE", 0)
URL = PropertySpec("URL", ValueType.URI)
RECURRENCE_ID = _date_or_time("RECURRENCE-ID", extra=frozenset({"RANGE"}))
RRULE = PropertySpec("RRULE", ValueType.RECUR, _M)
DURATION = PropertySpec("DURATION", ValueType.DURATION)
ATTACH = PropertySpec(
    "ATTACH", ValueType.URI, _M, alt_types=_URI_OR_BINARY, params=ATTACH_PARAMS
)
CATEGORIES = _text_list("CATEGORIES")
COMMENT = _text("COMMENT", _M)
CONTACT = _text("CONTACT", _M)
EXDATE = PropertySpec(
    "EXDATE",
    ValueType.DATE_TIME,
    _M,
    alt_types=_DATE_OR_DATE_TIME,
    multi_valued=True,
    params=DATE_TIME_PARAMS,
)
RDATE = PropertySpec(
    "RDATE",
    ValueType.DATE_TIME,
    _M,
    alt_types=frozenset({ValueType.DATE, ValueType.PERIOD}),
    multi_valued=True,
    params=DATE_TIME_PARAMS,
)
REQUEST_STATUS = PropertySpec("REQUEST-STATUS", ValueType.RAW, _M, params=LANGUAGE_PARAMS)
RELATED_TO = PropertySpec("RELATED-TO", ValueType.TEXT, _M, params=frozenset({"RELTYPE"}))
RESOURCES = _text_list("RESOURCES", params=TEXT_PARAMS)
SUMMARY = _text("SUMMARY")
DESCRIPTION = _text("DESCRIPTION")
LOCATION = _text("LOCATION")
COLOR = PropertySpec("COLOR", ValueType.TEXT)
IMAGE = PropertySpec("IMAGE", ValueType.URI, _M, alt_types=_URI_OR_BINARY, params=IMAGE_PARAMS)
CONFERENCE = PropertySpec(
    "CONFERENCE", ValueType.URI, _M, params=frozenset({"VALUE", "FEATURE", "LABEL", "LANGUAGE"})
)

_COMMON_SCHEDULED = [
    DTSTAMP,
    UID_REQUIRED,
    CLASS,
    CREATED,
    DESCRIPTION,
    DTSTART,
    GEO,
    LAST_MODIFIED,
    LOCATION,
    ORGANIZER,
    PRIORITY,
    SEQUENCE,
    SUMMARY,
    URL,
    RECURRENCE_ID,
    RRULE,
    DURATION,
    ATTACH,
    ATTENDEE,
    CATEGORIES,
    COMMENT,
    CONTACT,
    EXDATE,
    REQUEST_STATUS,
    RELATED_TO,
    RESOURCES,
    RDATE,
    COLOR,
    IMAGE,
    CONFERENCE,
]

_EVENT = _COMMON_SCHEDULED + [
    _enum("STATUS", {"TENTATIVE", "CONFIRMED", "CANCELLED"}),
    _enum("TRANSP", {"OPAQUE", "TRANSPARENT"}),
    _date_or_time("DTEND"),
]

_TODO = _COMMON_SCHEDULED + [
    _enum("STATUS", {"NEEDS-ACTION", "COMPLETED", "IN-PROCESS", "CANCELLED"}),
    _utc_stamp("COMPLETED"),
    _integer("PERCENT-COMPLETE", 0, 100),
    _date_or_time("DUE"),
]

_JOURNAL = [
    DTSTAMP,
    UID_REQUIRED,
    CLASS,
    CREATED,
    DTSTART,
    LAST_MODIFIED,
    ORGANIZER,
    RECURRENCE_ID,
    SEQUENCE,
    _enum("STATUS", {"DRAFT", "FINAL", "CANCELLED"}),
    SUMMARY,
    URL,
    COLOR,
    RRULE,
    ATTACH,
    ATTENDEE,
    CATEGORIES,
    COMMENT,
    CONTACT,
    _text("DESCRIPTION", _M),
    EXDATE,
    RELATED_TO,
    RDATE,
    REQUEST_STATUS,
    IMAGE,
]

_FREEBUSY = [
    DTSTAMP,
    UID_REQUIRED,
    _text("CONTACT"),
    PropertySpec("DTSTART", ValueType.DATE_TIME, params=DATE_TIME_PARAMS),
    PropertySpec("DTEND", ValueType.DATE_TIME, params=DATE_TIME_PARAMS),
    ORGANIZER,
    URL,
    ATTENDEE,
    COMMENT,
    PropertySpec(
        "FREEBUSY", ValueType.PERIOD, _M, multi_valued=True, params=frozenset({"FBTYPE"})
    ),
    REQUEST_STATUS,
]

_TIMEZONE = [
    _text("TZID", _R, params=frozenset()),
    LAST_MODIFIED,
    PropertySpec("TZURL", ValueType.URI),
]

_OBSERVANCE = [
    PropertySpec("DTSTART", ValueType.DATE_TIME, _R, params=DATE_TIME_PARAMS),
    PropertySpec("TZOFFSETTO", ValueType.UTC_OFFSET, _R),
    PropertySpec("TZOFFSETFROM", ValueType.UTC_OFFSET, _R),
    RRULE,
    COMMENT,
    RDATE,
    _text_list("TZNAME"),
]

_ALARM = [
    _enum("ACTION", {"AUDIO", "DISPLAY", "EMAIL"}, extensible=True, cardinality=_R),
    PropertySpec(
        "TRIGGER",
        ValueType.DURATION,
        _R,
        alt_types=frozenset({ValueType.DATE_TIME}),
        params=frozenset({"VALUE", "RELATED"}),
    ),
    DURATION,
    _integer("REPEAT", 0),
    ATTACH,
    _text("DESCRIPTION"),
    _text("SUMMARY"),
    ATTENDEE,
]

_CALENDAR = [
    _text("PRODID", _R, params=frozenset()),
    _text("VERSION", _R, params=frozenset()),
    _text("CALSCALE", params=frozenset()),
    _text("METHOD", params=frozenset()),
    _text("UID", params=frozenset()),
    LAST_MODIFIED,
    URL,
    PropertySpec("REFRESH-INTERVAL", ValueType.DURATION, params=frozenset({"VALUE"})),
    PropertySpec("SOURCE", ValueType.URI),
    COLOR,
    _text("NAME", _M),
    _text("DESCRIPTION", _M),
    CATEGORIES,
    IMAGE,
]


def _table(specs: list[PropertySpec]) -> dict[str, PropertySpec]:
    return {spec.name: spec for spec in specs}


SCHEMA: dict[ComponentKind, dict[str, PropertySpec]] = {
    ComponentKind.VCALENDAR: _table(_CALENDAR),
    ComponentKind.VEVENT: _table(_EVENT),
    ComponentKind.VTODO: _table(_TODO),
    ComponentKind.VJOURNAL: _table(_JOURNAL),
    ComponentKind.VFREEBUSY: _table(_FREEBUSY),
    ComponentKind.VTIMEZONE: _table(_TIMEZONE),
    ComponentKind.STANDARD: _table(_OBSERVANCE),
    ComponentKind.DAYLIGHT: _table(_OBSERVANCE),
    ComponentKind.VALARM: _table(_ALARM),
    ComponentKind.UNKNOWN: {},
}

_EXTENSION = PropertySpec("X-", ValueType.RAW, _M, known=False)

# Component kinds each parent may contain; UNKNOWN children are always kept.
CHILD_KINDS: dict[ComponentKind, frozenset] = {
    ComponentKind.VCALENDAR: frozenset(
        {
            ComponentKind.VEVENT,
            ComponentKind.VTODO,
            ComponentKind.VJOURNAL,
            ComponentKind.VFREEBUSY,
            ComponentKind.VTIMEZONE,
        }
    ),
    ComponentKind.VEVENT: frozenset({ComponentKind.VALARM}),
    ComponentKind.VTODO: frozenset({ComponentKind.VALARM}),
    ComponentKind.VTIMEZONE: frozenset({ComponentKind.STANDARD, ComponentKind.DAYLIGHT}),
}

# Mutually exclusive property pairs per component kind
CONFLICTS: dict[ComponentKind, list[tuple[str, str]]] = {
    ComponentKind.VEVENT: [("DTEND", "DURATION")],
    ComponentKind.VTODO: [("DUE", "DURATION")],
}


def lookup(kind: ComponentKind, name: str) -> PropertySpec:
    """Return the schema entry for a property, or the extension fallback."""
    upper = name.upper()
    spec = SCHEMA.get(kind, {}).get(upper)
    if spec is not None:
        return spec
    return replace(_EXTENSION, name=upper)


def is_known(kind: ComponentKind, name: str) -> bool:
    return name.upper() in SCHEMA.get(kind, {})


def required_properties(kind: ComponentKind) -> list[str]:
    return [
        spec.name for spec in SCHEMA.get(kind, {}).values() if spec.cardinality == Cardinality.REQUIRED
    ]


def permitted_params(spec: PropertySpec) -> frozenset:
    return spec.params | GLOBAL_PARAMS


def resolve_value_type(spec: PropertySpec, value_token: Optional[str], raw: str) -> ValueType:
    """Pick the value type for one property occurrence.

    Without a VALUE parameter the default type applies, except that a bare
    ``YYYYMMDD`` in a DATE-TIME property that also accepts DATE is read as a
    DATE. An unrecognized VALUE token yields RAW; a recognized type the
    property does not accept raises BAD_VALUE_TYPE.
    """
    if value_token is None:
        if (
            spec.value_type == ValueType.DATE_TIME
            and ValueType.DATE in spec.alt_types
            and looks_like_date(raw.split(",", 1)[0])
        ):
            return ValueType.DATE
        return spec.value_type

    value_type = ValueType.from_token(value_token)
    if value_type is None:
        return ValueType.RAW
    if not spec.known or spec.allows_type(value_type):
        return value_type
    raise ICSValueError(
        ValueErrorKind.BAD_VALUE_TYPE,
        value_token,
        f"{spec.name} accepts {', '.join(t.value for t in sorted(spec.alt_types | {spec.value_type}))}",
    )


def is_default_type(spec: PropertySpec, value_type: ValueType, raw: str) -> bool:
    """True when ``value_type`` would be chosen again without a VALUE parameter."""
    return resolve_value_type(spec, None, raw) == value_type


__all__ = [
    "CHILD_KINDS",
    "CONFLICTS",
    "Cardinality",
    "ComponentKind",
    "PropertySpec",
    "SCHEMA",
    "is_default_type",
    "is_known",
    "lookup",
    "permitted_params",
    "required_properties",
    "resolve_value_type",
]

