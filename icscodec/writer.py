"""Canonical ICS serialization of a calendar tree."""

import logging
from collections.abc import Iterator
from typing import Optional

from .config import CodecSettings, get_settings
from .folding import fold_lines
from .models import Calendar, Component, Property
from .schema import ComponentKind, is_default_type, lookup
from .tokenizer import format_content_line
from .value_codecs import format_items
from .value_types import DateTimeValue, Period, TimeForm, ValueType

logger = logging.getLogger(__name__)


class ICSWriter:
    """Writer producing folded, CRLF-terminated ICS text."""

    def __init__(self, settings: Optional[CodecSettings] = None) -> None:
        self.settings = settings or get_settings()

    def serialize(self, calendar: Calendar) -> str:
        """Serialize a whole calendar.

        Raises:
            ICSValueError: If a parameter value cannot be represented or a
                value cannot be formatted as its declared type
        """
        text = self.serialize_component(calendar)
        logger.debug(f"Serialized calendar: {len(text.encode('utf-8'))} bytes")
        return text

    def serialize_component(self, component: Component) -> str:
        """Serialize one component and everything nested in it."""
        return fold_lines(self._component_lines(component), self.settings.fold_width)

    def _name(self, name: str) -> str:
        return name if self.settings.preserve_name_case else name.upper()

    def _component_lines(self, component: Component) -> Iterator[str]:
        name = self._name(component.name)
        yield f"BEGIN:{name}"
        for prop in component.properties:
            yield self._property_line(component.kind, prop)
        for child in component.components:
            yield from self._component_lines(child)
        yield f"END:{name}"

    def _property_line(self, kind: ComponentKind, prop: Property) -> str:
        value_type = prop.value.type
        value_text = format_items(value_type, prop.value.items)
        params = [(param.name, list(param.values)) for param in prop.params]

        if kind != ComponentKind.UNKNOWN:
            params.extend(self._implied_params(kind, prop, value_text))

        return format_content_line(
            prop.name, params, value_text, upper=not self.settings.preserve_name_case
        )

    def _implied_params(self, kind: ComponentKind, prop: Property, value_text: str) -> list:
        """Parameters the value needs to parse back to the same type and zone."""
        implied: list = []
        value_type = prop.value.type

        if (
            prop.param("VALUE") is None
            and value_type != ValueType.RAW
            and not is_default_type(lookup(kind, prop.name), value_type, value_text)
        ):
            implied.append(("VALUE", [value_type.value]))

        if prop.param("TZID") is None:
            tzid = _zoned_tzid(prop.value.items)
            if tzid is not None:
                implied.append(("TZID", [tzid]))
        return implied


def _zoned_tzid(items: list) -> Optional[str]:
    for item in items:
        start = item.start if isinstance(item, Period) else item
        if isinstance(start, DateTimeValue) and start.form == TimeForm.ZONED:
            return start.tzid
    return None


def serialize(calendar: Calendar, settings: Optional[CodecSettings] = None) -> str:
    """Serialize a calendar with a fresh ``ICSWriter``."""
    return ICSWriter(settings).serialize(calendar)


def serialize_component(component: Component, settings: Optional[CodecSettings] = None) -> str:
    return ICSWriter(settings).serialize_component(component)
