"""Shared fixtures for icscodec tests."""

import logging
from typing import Any

import pytest

from icscodec.config import CodecSettings
from icscodec.logging_config import reset_logging
from tests.fixtures.ics_data import ics



# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> CodecSettings:
    """Default codec settings, isolated from the environment."""
    return CodecSettings(_env_file=None)


@pytest.fixture
def strict_settings() -> CodecSettings:
    """Settings that reject duplicated required properties while parsing."""
    return CodecSettings(_env_file=None, strict_duplicates=True)


@pytest.fixture(autouse=True)
def clean_codec_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ICSCODEC_* variables from the host out of the tests."""
    for name in ("ICSCODEC_DEBUG", "ICSCODEC_LOG_LEVEL", "ICSCODEC_FOLD_WIDTH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def restore_logging() -> Any:
    """Undo logging configuration made by a test."""
    yield
    reset_logging()
    logging.getLogger("icscodec").propagate = True


# ============================================================================
# Sample Documents
# ============================================================================


@pytest.fixture
def minimal_event_ics() -> str:
    """Smallest calendar with one complete event."""
    return ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Test//Test//EN",
        "BEGIN:VEVENT",
        "UID:1",
        "DTSTAMP:20240101T000000Z",
        "DTSTART:20240101T090000Z",
        "DTEND:20240101T100000Z",
        "SUMMARY:Test",
        "END:VEVENT",
        "END:VCALENDAR",
    )


@pytest.fixture
def full_calendar_ics() -> str:
    """Calendar exercising most component kinds and value types."""
    return ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Example Corp//Calendar 1.0//EN",
        "CALSCALE:GREGORIAN",
        "NAME:Team calendar",
        "COLOR:turquoise",
        "REFRESH-INTERVAL;VALUE=DURATION:PT12H",
        "X-WR-CALNAME:Team",
        "BEGIN:VTIMEZONE",
        "TZID:Europe/Berlin",
        "BEGIN:STANDARD",
        "DTSTART:19701025T030000",
        "TZOFFSETFROM:+0200",
        "TZOFFSETTO:+0100",
        "TZNAME:CET",
        "RRULE:FREQ=YEARLY;BYMONTH=10;BYDAY=-1SU",
        "END:STANDARD",
        "BEGIN:DAYLIGHT",
        "DTSTART:19700329T020000",
        "TZOFFSETFROM:+0100",
        "TZOFFSETTO:+0200",
        "TZNAME:CEST",
        "RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU",
        "END:DAYLIGHT",
        "END:VTIMEZONE",
        "BEGIN:VEVENT",
        "UID:event-1@example.com",
        "DTSTAMP:20240101T120000Z",
        "DTSTART;TZID=Europe/Berlin:20240115T090000",
        "DURATION:PT1H30M",
        "SUMMARY:Planning\\, part 1",
        "DESCRIPTION:Agenda:\\nReview\\; plan",
        "LOCATION:Room 1",
        "GEO:52.52;13.405",
        "CATEGORIES:WORK,PLANNING",
        "CLASS:PRIVATE",
        "PRIORITY:5",
        "SEQUENCE:2",
        "STATUS:CONFIRMED",
        "TRANSP:OPAQUE",
        'ORGANIZER;CN="Doe, Jane":mailto:jane@example.com',
        "ATTENDEE;ROLE=REQ-PARTICIPANT;PARTSTAT=ACCEPTED;CN=Bob:mailto:bob@example.com",
        "RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE,FR;UNTIL=20241231T000000Z",
        "EXDATE;TZID=Europe/Berlin:20240122T090000,20240129T090000",
        "URL:https://example.com/meetings/1",
        "X-MICROSOFT-CDO-BUSYSTATUS:BUSY",
        "BEGIN:VALARM",
        "ACTION:DISPLAY",
        "DESCRIPTION:Reminder",
        "TRIGGER:-PT15M",
        "DURATION:PT5M",
        "REPEAT:2",
        "END:VALARM",
        "END:VEVENT",
        "BEGIN:VTODO",
        "UID:todo-1@example.com",
        "DTSTAMP:20240101T120000Z",
        "DTSTART;VALUE=DATE:20240110",
        "DUE;VALUE=DATE:20240120",
        "PERCENT-COMPLETE:40",
        "STATUS:IN-PROCESS",
        "SUMMARY:Write report",
        "END:VTODO",
        "BEGIN:VJOURNAL",
        "UID:journal-1@example.com",
        "DTSTAMP:20240101T120000Z",
        "DTSTART;VALUE=DATE:20240101",
        "DESCRIPTION:First entry",
        "DESCRIPTION:Second entry",
        "END:VJOURNAL",
        "BEGIN:VFREEBUSY",
        "UID:fb-1@example.com",
        "DTSTAMP:20240101T120000Z",
        "FREEBUSY;FBTYPE=BUSY:20240115T080000Z/PT1H,20240116T080000Z/20240116T100000Z",
        "END:VFREEBUSY",
        "END:VCALENDAR",
    )


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
