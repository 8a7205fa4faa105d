"""Unit tests for ICS serialization."""

import logging
from datetime import date, datetime

import pytest

from icscodec import parse, serialize
from icscodec.config import CodecSettings
from icscodec.exceptions import ICSValueError, ValueErrorKind
from icscodec.models import Calendar, Component, Parameter, Property
from icscodec.value_types import (
    DateTimeValue,
    Duration,
    Frequency,
    Geo,
    Period,
    Recur,
    UtcOffset,
    ValueType,
)
from icscodec.writer import ICSWriter, serialize_component
from tests.fixtures.ics_data import ics

pytestmark = pytest.mark.unit


def physical_lines(text: str) -> list[str]:
    assert text.endswith("\r\n")
    return text[:-2].split("\r\n")


def built_calendar() -> Calendar:
    """A calendar assembled in code, with every property typed explicitly."""
    calendar = Calendar.new("-//Test//Built//EN")

    vevent = Component.create("VEVENT")
    vevent.add(Property.create("UID", ValueType.TEXT, "built-1@example.com"))
    vevent.add(Property.create("DTSTAMP", ValueType.DATE_TIME, DateTimeValue.utc(datetime(2024, 1, 1, 12))))
    vevent.add(Property.create("DTSTART", ValueType.DATE_TIME, DateTimeValue.floating(datetime(2024, 3, 1, 9))))
    vevent.add(Property.create("DURATION", ValueType.DURATION, Duration(hours=2)))
    vevent.add(Property.create("SUMMARY", ValueType.TEXT, "Lunch; then, walk\\talk\nback"))
    vevent.add(Property.create("CATEGORIES", ValueType.TEXT, "A,B", "C"))
    vevent.add(Property.create("GEO", ValueType.GEO, Geo(latitude=-33.8688, longitude=151.2093)))
    vevent.add(Property.create("RRULE", ValueType.RECUR, Recur(freq=Frequency.DAILY, count=5)))
    vevent.add(
        Property.create(
            "ATTENDEE",
            ValueType.CAL_ADDRESS,
            "mailto:a@x.org",
            params=[Parameter(name="CN", values=["Smith; Al"]), Parameter(name="RSVP", values=["TRUE"])],
        )
    )

    valarm = Component.create("VALARM")
    valarm.add(Property.create("ACTION", ValueType.TEXT, "AUDIO"))
    valarm.add(Property.create("TRIGGER", ValueType.DURATION, Duration(negative=True, minutes=10)))
    vevent.components.append(valarm)

    vtimezone = Component.create("VTIMEZONE")
    vtimezone.add(Property.create("TZID", ValueType.TEXT, "Test/Zone"))
    standard = Component.create("STANDARD")
    standard.add(Property.create("DTSTART", ValueType.DATE_TIME, DateTimeValue.floating(datetime(1970, 1, 1))))
    standard.add(Property.create("TZOFFSETFROM", ValueType.UTC_OFFSET, UtcOffset(seconds=3600)))
    standard.add(Property.create("TZOFFSETTO", ValueType.UTC_OFFSET, UtcOffset(seconds=-5400)))
    vtimezone.components.append(standard)

    calendar.components.extend([vtimezone, vevent])
    return calendar


class TestRoundTrip:
    """Test that parse(serialize(t)) reproduces t."""

    def test_minimal_event_is_byte_identical(self, minimal_event_ics: str) -> None:
        """Test the minimal VEVENT document."""
        assert parse(minimal_event_ics).serialize() == minimal_event_ics

    def test_full_calendar(self, full_calendar_ics: str) -> None:
        """Test every component kind and most value types."""
        calendar = parse(full_calendar_ics)
        assert parse(serialize(calendar)) == calendar

    def test_hand_built_calendar(self) -> None:
        """Test a tree that never came from text."""
        calendar = built_calendar()

        assert calendar.validate() == []
        assert parse(calendar.serialize()) == calendar

    def test_unknown_component_is_kept(self) -> None:
        """Test that unknown components and their raw values survive."""
        text = ics(
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//Test//Test//EN",
            "BEGIN:VAVAILABILITY",
            "UID:a\\,b",
            "BEGIN:AVAILABLE",
            "DTSTART:20240101T090000Z",
            "END:AVAILABLE",
            "END:VAVAILABILITY",
            "END:VCALENDAR",
        )
        assert serialize(parse(text)) == text

    def test_extension_property_is_verbatim(self) -> None:
        """Test that raw extension values are not re-escaped."""
        text = ics(
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//Test//Test//EN",
            "X-WR-CALDESC:Line one\\nLine\\, two;still raw",
            "END:VCALENDAR",
        )
        assert serialize(parse(text)) == text

    def test_normalization_is_stable(self) -> None:
        """Test that a second cycle produces the same text as the first."""
        text = ics(
            "begin:vcalendar",
            "version:2.0",
            "prodid:-//Test//Test//EN",
            "begin:vevent",
            "uid:1",
            "dtstamp:20240101t000000z",
            "dtstart:20240101T090000Z",
            "rrule:freq=monthly;byday=+1mo;count=3",
            "end:vevent",
            "end:vcalendar",
        )
        once = serialize(parse(text))
        twice = serialize(parse(once))

        assert once == twice
        assert "RRULE:FREQ=MONTHLY;COUNT=3;BYDAY=1MO\r\n" in once
        assert "DTSTAMP:20240101T000000Z\r\n" in once

    def test_carriage_return_in_text(self) -> None:
        """Test that a bare CR in TEXT is written as a line break."""
        calendar = Calendar.new("-//Test//Test//EN")
        vtodo = Component.create("VTODO")
        vtodo.add(Property.create("UID", ValueType.TEXT, "t1"))
        vtodo.add(Property.create("SUMMARY", ValueType.TEXT, "a\rb"))
        calendar.components.append(vtodo)

        once = serialize(calendar)
        reparsed = parse(once)

        assert "SUMMARY:a\\nb\r\n" in once
        assert reparsed.components[0].get("SUMMARY").value.items == ["a\nb"]
        assert serialize(reparsed) == once


class TestLineFormat:
    """Test line terminators and folding."""

    def test_crlf_everywhere(self, full_calendar_ics: str) -> None:
        """Test that every line, including the last, ends with CRLF."""
        text = serialize(parse(full_calendar_ics))

        assert text.endswith("END:VCALENDAR\r\n")
        assert "\n" not in text.replace("\r\n", "")
        assert "\r" not in text.replace("\r\n", "")

    @pytest.mark.parametrize("summary", ["x" * 200, "é" * 120, "日本語のテキスト" * 20, "a€" * 90])
    def test_long_lines_are_folded(self, summary: str) -> None:
        """Test that no physical line exceeds 75 octets."""
        calendar = Calendar.new("-//Test//Test//EN")
        vjournal = Component.create("VJOURNAL")
        vjournal.add(Property.create("SUMMARY", ValueType.TEXT, summary))
        calendar.components.append(vjournal)

        text = serialize(calendar)
        lines = physical_lines(text)

        assert all(len(line.encode("utf-8")) <= 75 for line in lines)
        assert any(line.startswith(" ") for line in lines)
        assert parse(text).components[0].get("SUMMARY").value.item == summary

    def test_custom_fold_width(self) -> None:
        """Test the fold_width setting."""
        settings = CodecSettings(_env_file=None, fold_width=30)
        calendar = Calendar.new("-//A long product identifier for folding//EN")

        text = ICSWriter(settings).serialize(calendar)

        assert all(len(line.encode("utf-8")) <= 30 for line in physical_lines(text))
        assert parse(text) == calendar

    def test_serialize_single_component(self) -> None:
        """Test writing one component without a calendar."""
        vtodo = Component.create("VTODO")
        vtodo.add(Property.create("UID", ValueType.TEXT, "t1"))

        assert serialize_component(vtodo) == ics("BEGIN:VTODO", "UID:t1", "END:VTODO")

    def test_serialize_logs_size(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the debug record written after serialization."""
        with caplog.at_level(logging.DEBUG, logger="icscodec.writer"):
            serialize(Calendar.new("-//Test//Test//EN"))
        assert "Serialized calendar" in caplog.text


class TestValueOutput:
    """Test how values and parameters are rendered."""

    def test_text_is_escaped(self) -> None:
        """Test backslash, semicolon, comma and newline escaping."""
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("SUMMARY", ValueType.TEXT, "a,b;c\\d\ne"))

        assert "SUMMARY:a\\,b\\;c\\\\d\\ne\r\n" in serialize_component(vevent)

    def test_text_list_items_are_escaped_separately(self) -> None:
        """Test that commas inside list items stay escaped."""
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("CATEGORIES", ValueType.TEXT, "A,B", "C"))

        assert "CATEGORIES:A\\,B,C\r\n" in serialize_component(vevent)

    def test_parameter_quoting(self) -> None:
        """Test that only values with ':', ';' or ',' are quoted."""
        vevent = Component.create("VEVENT")
        vevent.add(
            Property.create(
                "ORGANIZER",
                ValueType.CAL_ADDRESS,
                "mailto:j@x.org",
                params=[
                    Parameter(name="CN", values=["Doe, Jane"]),
                    Parameter(name="DIR", values=["ldap://x.org"]),
                    Parameter(name="LANGUAGE", values=["en"]),
                ],
            )
        )
        line = 'ORGANIZER;CN="Doe, Jane";DIR="ldap://x.org";LANGUAGE=en:mailto:j@x.org'
        assert f"{line}\r\n" in serialize_component(vevent)

    def test_multi_valued_parameter(self) -> None:
        """Test comma-joined parameter values."""
        vevent = Component.create("VEVENT")
        vevent.add(
            Property.create(
                "ATTENDEE",
                ValueType.CAL_ADDRESS,
                "mailto:a@x.org",
                params=[Parameter(name="MEMBER", values=["mailto:g1@x.org", "mailto:g2@x.org"])],
            )
        )
        expected = 'ATTENDEE;MEMBER="mailto:g1@x.org","mailto:g2@x.org":mailto:a@x.org'
        assert f"{expected}\r\n" in serialize_component(vevent)

    def test_parameter_with_quote_is_rejected(self) -> None:
        """Test that a DQUOTE in a parameter value cannot be written."""
        calendar = Calendar.new("-//Test//Test//EN")
        calendar.add(Property.create("NAME", ValueType.TEXT, "x", params=[Parameter(name="ALTREP", values=['say "hi"'])]))

        with pytest.raises(ICSValueError) as exc_info:
            serialize(calendar)
        assert exc_info.value.kind == ValueErrorKind.BAD_PARAMETER

    def test_empty_text_value(self) -> None:
        """Test a property with an empty value."""
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("DESCRIPTION", ValueType.TEXT, ""))

        assert "DESCRIPTION:\r\n" in serialize_component(vevent)


class TestImpliedParameters:
    """Test VALUE and TZID parameters added for hand-built values."""

    def test_default_type_needs_no_value_param(self) -> None:
        """Test that default types are written bare."""
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("DTSTART", ValueType.DATE, date(2024, 1, 1)))
        vevent.add(Property.create("DTEND", ValueType.DATE_TIME, DateTimeValue.utc(datetime(2024, 1, 2))))

        text = serialize_component(vevent)

        assert "DTSTART:20240101\r\n" in text
        assert "DTEND:20240102T000000Z\r\n" in text

    def test_alternative_type_gets_value_param(self) -> None:
        """Test a PERIOD RDATE."""
        start = DateTimeValue.utc(datetime(2024, 1, 1, 9))
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("RDATE", ValueType.PERIOD, Period(start=start, duration=Duration(hours=1))))

        assert "RDATE;VALUE=PERIOD:20240101T090000Z/PT1H\r\n" in serialize_component(vevent)

    def test_typed_extension_gets_value_param(self) -> None:
        """Test that a typed extension property keeps its type."""
        vevent = Component.create("VEVENT")
        vevent.add(Property.create("X-COUNT", ValueType.INTEGER, 5))

        text = serialize_component(vevent)

        assert "X-COUNT;VALUE=INTEGER:5\r\n" in text

    def test_existing_value_param_is_not_repeated(self) -> None:
        """Test that an explicit VALUE parameter is written once."""
        vevent = Component.create("VEVENT")
        vevent.add(
            Property.create(
                "DTSTART", ValueType.DATE, date(2024, 1, 1), params=[Parameter(name="VALUE", values=["DATE"])]
            )
        )
        assert serialize_component(vevent).count("VALUE=DATE") == 1

    def test_zoned_value_gets_tzid(self) -> None:
        """Test that a zoned date-time carries its TZID."""
        vevent = Component.create("VEVENT")
        vevent.add(
            Property.create("DTSTART", ValueType.DATE_TIME, DateTimeValue.zoned(datetime(2024, 5, 1, 8), "Europe/Paris"))
        )
        assert "DTSTART;TZID=Europe/Paris:20240501T080000\r\n" in serialize_component(vevent)

    def test_implied_parameters_survive_parsing(self) -> None:
        """Test that the written text parses back to the same values."""
        calendar = Calendar.new("-//Test//Test//EN")
        vevent = Component.create("VEVENT")
        zoned = DateTimeValue.zoned(datetime(2024, 5, 1, 8), "America/New_York")
        vevent.add(Property.create("DTSTART", ValueType.DATE_TIME, zoned))
        vevent.add(Property.create("X-FLAG", ValueType.BOOLEAN, True))
        calendar.components.append(vevent)

        text = serialize(calendar)
        parsed = parse(text).components[0]

        assert parsed.get("DTSTART").value == vevent.get("DTSTART").value
        assert parsed.get("DTSTART").param("TZID") == ["America/New_York"]
        assert parsed.get("X-FLAG").value.item is True
        assert serialize(parse(text)) == text

    def test_unknown_component_gets_no_implied_params(self) -> None:
        """Test that values inside unknown components are written as stored."""
        unknown = Component.create("X-THING")
        unknown.add(Property.create("DTSTART", ValueType.RAW, "20240101T090000"))

        assert serialize_component(unknown) == ics("BEGIN:X-THING", "DTSTART:20240101T090000", "END:X-THING")


class TestNameCase:
    """Test name canonicalization."""

    def test_names_are_upper_cased_by_default(self) -> None:
        """Test component, property and parameter names."""
        component = Component.create("vtodo")
        component.add(Property.create("x-Custom", ValueType.RAW, "v", params=[Parameter(name="x-Param", values=["1"])]))

        assert serialize_component(component) == ics("BEGIN:VTODO", "X-CUSTOM;X-PARAM=1:v", "END:VTODO")

    def test_preserve_name_case(self) -> None:
        """Test that names are written as stored when configured."""
        settings = CodecSettings(_env_file=None, preserve_name_case=True)
        component = Component.create("vtodo")
        component.add(Property.create("x-Custom", ValueType.RAW, "v", params=[Parameter(name="x-Param", values=["1"])]))

        text = ICSWriter(settings).serialize_component(component)

        assert text == ics("BEGIN:vtodo", "x-Custom;x-Param=1:v", "END:vtodo")

    def test_preserved_case_round_trips(self) -> None:
        """Test that parsed names keep their original spelling."""
        settings = CodecSettings(_env_file=None, preserve_name_case=True)
        text = ics(
            "BEGIN:VCALENDAR",
            "Version:2.0",
            "ProdId:-//Test//Test//EN",
            "BEGIN:VEVENT",
            "Uid:1",
            "DtStamp:20240101T000000Z",
            "DtStart:20240101T090000Z",
            "END:VEVENT",
            "END:VCALENDAR",
        )
        calendar = parse(text, settings)

        assert calendar.version == "2.0"
        assert ICSWriter(settings).serialize(calendar) == text
