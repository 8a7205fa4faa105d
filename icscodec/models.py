"""Data models for the in-memory calendar tree."""

from typing import TYPE_CHECKING, Any, List, Optional

from pydantic import BaseModel, Field

from .schema import ComponentKind
from .value_types import ValueType

if TYPE_CHECKING:
    from .config import CodecSettings
    from .validator import ValidationIssue


class Parameter(BaseModel):
    """A property parameter such as ``TZID=Europe/Paris`` or ``MEMBER=a,b``."""

    name: str
    values: List[str] = Field(..., min_length=1)

    @property
    def key(self) -> str:
        return self.name.upper()

    @property
    def value(self) -> str:
        """First value, the common case for single-valued parameters."""
        return self.values[0]


class Value(BaseModel):
    """A typed property value.

    ``items`` holds one entry for single-valued properties and one entry per
    comma-separated element for list-valued ones (CATEGORIES, EXDATE, ...).
    """

    type: ValueType
    items: List[Any] = Field(default_factory=list)

    @classmethod
    def of(cls, value_type: ValueType, *items: Any) -> "Value":
        return cls(type=value_type, items=list(items))

    @property
    def item(self) -> Any:
        """The single item of a single-valued property."""
        if len(self.items) != 1:
            raise ValueError(f"{self.type.value} value holds {len(self.items)} items, not one")
        return self.items[0]


class Property(BaseModel):
    """A content line after typing: name, parameters and value."""

    name: str = Field(..., description="Property name as written")
    params: List[Parameter] = Field(default_factory=list)
    value: Value

    @classmethod
    def create(
        cls,
        name: str,
        value_type: ValueType,
        *items: Any,
        params: Optional[List[Parameter]] = None,
    ) -> "Property":
        """Build a property from a type and its items."""
        return cls(name=name, params=params or [], value=Value.of(value_type, *items))

    @property
    def key(self) -> str:
        """Upper-cased name used for schema lookups and matching."""
        return self.name.upper()

    def param(self, name: str) -> Optional[List[str]]:
        """Return the values of the first parameter called ``name``."""
        wanted = name.upper()
        for parameter in self.params:
            if parameter.key == wanted:
                return parameter.values
        return None


class Component(BaseModel):
    """A BEGIN/END block with its properties and nested components."""

    kind: ComponentKind
    name: str = Field(..., description="Component name as written")
    properties: List[Property] = Field(default_factory=list)
    components: List["Component"] = Field(default_factory=list)

    @classmethod
    def create(cls, name: str) -> "Component":
        return cls(kind=ComponentKind.from_name(name), name=name)

    def get(self, name: str) -> Optional[Property]:
        """First property called ``name`` (case-insensitive), or None."""
        wanted = name.upper()
        for prop in self.properties:
            if prop.key == wanted:
                return prop
        return None

    def get_all(self, name: str) -> List[Property]:
        wanted = name.upper()
        return [prop for prop in self.properties if prop.key == wanted]

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def add(self, prop: Property) -> Property:
        self.properties.append(prop)
        return prop

    def remove(self, name: str) -> int:
        """Remove every property called ``name``; return how many were removed."""
        wanted = name.upper()
        before = len(self.properties)
        self.properties = [prop for prop in self.properties if prop.key != wanted]
        return before - len(self.properties)

    def children(self, kind: ComponentKind) -> List["Component"]:
        return [child for child in self.components if child.kind == kind]

    @property
    def alarms(self) -> List["Component"]:
        return self.children(ComponentKind.VALARM)


class Calendar(Component):
    """The VCALENDAR root of a parsed document."""

    kind: ComponentKind = ComponentKind.VCALENDAR
    name: str = "VCALENDAR"

    @classmethod
    def new(cls, prodid: str, version: str = "2.0") -> "Calendar":
        """Build an empty calendar carrying the two required properties."""
        calendar = cls()
        calendar.add(Property.create("PRODID", ValueType.TEXT, prodid))
        calendar.add(Property.create("VERSION", ValueType.TEXT, version))
        return calendar

    def _text(self, name: str) -> Optional[str]:
        prop = self.get(name)
        if prop is None or not prop.value.items:
            return None
        return str(prop.value.items[0])

    @property
    def version(self) -> Optional[str]:
        return self._text("VERSION")

    @property
    def prodid(self) -> Optional[str]:
        return self._text("PRODID")

    @property
    def method(self) -> Optional[str]:
        return self._text("METHOD")

    @property
    def events(self) -> List[Component]:
        return self.children(ComponentKind.VEVENT)

    @property
    def todos(self) -> List[Component]:
        return self.children(ComponentKind.VTODO)

    @property
    def timezones(self) -> List[Component]:
        return self.children(ComponentKind.VTIMEZONE)

    def validate(self) -> List["ValidationIssue"]:  # type: ignore[override]
        """Run the structural checks; see ``icscodec.validator.validate``."""
        from .validator import validate

        return validate(self)

    def serialize(self, settings: Optional["CodecSettings"] = None) -> str:
        """Write the calendar as folded, CRLF-terminated text."""
        from .writer import ICSWriter

        return ICSWriter(settings).serialize(self)


Component.model_rebuild()
