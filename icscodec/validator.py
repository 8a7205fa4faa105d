"""Structural validation of a parsed calendar tree.

Validation never raises: every check runs against every component and the
findings are returned as a list of ``ValidationIssue`` values. Only
Error-severity issues make a calendar invalid; extension content produces
warnings.
"""

import logging
from collections import Counter
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .models import Calendar, Component, Property
from .schema import (
    CHILD_KINDS,
    CONFLICTS,
    ComponentKind,
    PropertySpec,
    is_known,
    lookup,
    permitted_params,
    required_properties,
)
from .value_types import ValueType

logger = logging.getLogger(__name__)

_OBSERVANCE_KINDS = frozenset({ComponentKind.STANDARD, ComponentKind.DAYLIGHT})
_ALARM_PARENTS = frozenset({ComponentKind.VEVENT, ComponentKind.VTODO})

# Properties an alarm needs beyond ACTION and TRIGGER, per action
_ALARM_ACTION_REQUIRES = {
    "DISPLAY": ("DESCRIPTION",),
    "EMAIL": ("DESCRIPTION", "SUMMARY", "ATTENDEE"),
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationKind(str, Enum):
    """What a validation issue is about."""

    MISSING = "Missing"
    DUPLICATE = "Duplicate"
    CONFLICT = "Conflict"
    DEPENDENCY = "Dependency"
    INVALID_VALUE = "InvalidValue"
    UNKNOWN_EXTENSION = "UnknownExtension"
    UNKNOWN_PARAMETER = "UnknownParameter"
    EMPTY_CALENDAR = "EmptyCalendar"
    MISPLACED_COMPONENT = "MisplacedComponent"


class ValidationIssue(BaseModel):
    """One finding of the validator."""

    severity: Severity
    kind: ValidationKind
    component: str
    property_name: Optional[str] = None
    message: str

    model_config = ConfigDict(frozen=True)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def __str__(self) -> str:
        target = f"{self.component}.{self.property_name}" if self.property_name else self.component
        return f"{self.severity.value.upper()} {self.kind.value} {target}: {self.message}"


class _IssueCollector:
    """Accumulates issues for one validation run."""

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def report(
        self,
        kind: ValidationKind,
        component: Component,
        message: str,
        prop: Optional[str] = None,
        severity: Severity = Severity.ERROR,
    ) -> None:
        issue = ValidationIssue(
            severity=severity,
            kind=kind,
            component=component.name.upper(),
            property_name=prop,
            message=message,
        )
        logger.debug(f"Validation issue: {issue}")
        self.issues.append(issue)

    def missing(self, component: Component, name: str, message: Optional[str] = None) -> None:
        self.report(
            ValidationKind.MISSING,
            component,
            message or f"{component.name.upper()} requires {name}",
            prop=name,
        )


def validate(calendar: Calendar) -> List[ValidationIssue]:
    """Check a calendar tree against the property schema and RFC 5545 rules.

    Args:
        calendar: Tree produced by the parser or built by hand

    Returns:
        Every issue found; an empty list means structurally sound
    """
    collector = _IssueCollector()
    has_method = calendar.has("METHOD")

    _check_nesting(collector, calendar)
    _check_component(collector, calendar)
    if not calendar.components:
        collector.report(
            ValidationKind.EMPTY_CALENDAR,
            calendar,
            "calendar holds no components",
            severity=Severity.WARNING,
        )
    for child in calendar.components:
        _walk(collector, child, has_method)

    errors = sum(1 for issue in collector.issues if issue.is_error)
    logger.debug(
        f"Validation finished: {errors} errors, {len(collector.issues) - errors} warnings"
    )
    return collector.issues


def _may_contain(parent: ComponentKind, child: ComponentKind) -> bool:
    if child == ComponentKind.VCALENDAR:
        return False
    if child == ComponentKind.VALARM:
        return parent in _ALARM_PARENTS
    if child == ComponentKind.UNKNOWN or parent == ComponentKind.UNKNOWN:
        return True
    return child in CHILD_KINDS.get(parent, frozenset())


def _check_nesting(collector: _IssueCollector, component: Component) -> None:
    """Report children the parser would reject at this position.

    Runs over the whole tree, including the inside of unknown components.
    """
    for child in component.components:
        if not _may_contain(component.kind, child.kind):
            collector.report(
                ValidationKind.MISPLACED_COMPONENT,
                child,
                f"{child.name.upper()} cannot be nested in {component.name.upper()}",
            )
        _check_nesting(collector, child)


def _walk(collector: _IssueCollector, component: Component, has_method: bool) -> None:
    if component.kind == ComponentKind.UNKNOWN:
        collector.report(
            ValidationKind.UNKNOWN_EXTENSION,
            component,
            f"unknown component {component.name} kept as is",
            severity=Severity.WARNING,
        )
        return

    _check_component(collector, component)

    if component.kind == ComponentKind.VEVENT and not has_method and not component.has("DTSTART"):
        collector.missing(component, "DTSTART", "VEVENT requires DTSTART when METHOD is absent")
    if component.kind == ComponentKind.VTODO:
        _check_todo(collector, component)
    elif component.kind == ComponentKind.VALARM:
        _check_alarm(collector, component)
    elif component.kind == ComponentKind.VTIMEZONE:
        if not any(child.kind in _OBSERVANCE_KINDS for child in component.components):
            collector.report(
                ValidationKind.MISSING,
                component,
                "VTIMEZONE requires at least one STANDARD or DAYLIGHT component",
            )

    for child in component.components:
        _walk(collector, child, has_method)


def _check_component(collector: _IssueCollector, component: Component) -> None:
    """Schema checks shared by every known component kind."""
    kind = component.kind

    for name in required_properties(kind):
        if not component.has(name):
            collector.missing(component, name)

    counts = Counter(prop.key for prop in component.properties)
    for name, count in counts.items():
        spec = lookup(kind, name)
        if spec.known and not spec.repeatable and count > 1:
            collector.report(
                ValidationKind.DUPLICATE,
                component,
                f"{name} may appear once, found {count} times",
                prop=name,
            )

    for first, second in CONFLICTS.get(kind, []):
        if counts[first] and counts[second]:
            collector.report(
                ValidationKind.CONFLICT,
                component,
                f"{first} and {second} cannot both be present",
                prop=second,
            )

    for prop in component.properties:
        _check_property(collector, component, prop)


def _check_property(collector: _IssueCollector, component: Component, prop: Property) -> None:
    if not is_known(component.kind, prop.key):
        collector.report(
            ValidationKind.UNKNOWN_EXTENSION,
            component,
            f"extension property {prop.key} is not in the schema",
            prop=prop.key,
            severity=Severity.WARNING,
        )
        return

    spec = lookup(component.kind, prop.key)
    allowed = permitted_params(spec)
    for param in prop.params:
        if param.key not in allowed and not param.key.startswith("X-"):
            collector.report(
                ValidationKind.UNKNOWN_PARAMETER,
                component,
                f"parameter {param.key} is not defined for {prop.key}",
                prop=prop.key,
                severity=Severity.WARNING,
            )

    _check_type(collector, component, prop, spec)
    _check_value(collector, component, prop, spec)


def _check_type(
    collector: _IssueCollector, component: Component, prop: Property, spec: PropertySpec
) -> None:
    value = prop.value

    # RAW stands for an unrecognized VALUE token and is accepted anywhere
    if value.type != ValueType.RAW and not spec.allows_type(value.type):
        accepted = sorted(t.value for t in spec.alt_types | {spec.value_type})
        collector.report(
            ValidationKind.INVALID_VALUE,
            component,
            f"{prop.key} cannot hold a {value.type.value} value; accepts {', '.join(accepted)}",
            prop=prop.key,
        )

    if not value.items:
        collector.report(
            ValidationKind.INVALID_VALUE, component, f"{prop.key} has no value", prop=prop.key
        )
    elif len(value.items) > 1 and not spec.multi_valued:
        collector.report(
            ValidationKind.INVALID_VALUE,
            component,
            f"{prop.key} takes a single value, found {len(value.items)}",
            prop=prop.key,
        )


def _check_value(
    collector: _IssueCollector, component: Component, prop: Property, spec: PropertySpec
) -> None:
    value = prop.value

    if spec.allowed_values is not None and value.type == ValueType.TEXT:
        for item in value.items:
            token = str(item).upper()
            if token in spec.allowed_values:
                continue
            if spec.extensible_values:
                if not token.startswith("X-"):
                    collector.report(
                        ValidationKind.INVALID_VALUE,
                        component,
                        f"{prop.key} value {item!r} is not a registered value",
                        prop=prop.key,
                        severity=Severity.WARNING,
                    )
                continue
            collector.report(
                ValidationKind.INVALID_VALUE,
                component,
                f"{prop.key} must be one of {', '.join(sorted(spec.allowed_values))}, got {item!r}",
                prop=prop.key,
            )

    if spec.int_range is not None and value.type == ValueType.INTEGER:
        low, high = spec.int_range
        for item in value.items:
            if item < low or (high is not None and item > high):
                bounds = f"{low}..{high}" if high is not None else f">= {low}"
                collector.report(
                    ValidationKind.INVALID_VALUE,
                    component,
                    f"{prop.key} must be {bounds}, got {item}",
                    prop=prop.key,
                )


def _check_todo(collector: _IssueCollector, component: Component) -> None:
    if component.has("DURATION") and not component.has("DTSTART"):
        collector.report(
            ValidationKind.DEPENDENCY,
            component,
            "DURATION requires DTSTART",
            prop="DURATION",
        )


def _check_alarm(collector: _IssueCollector, component: Component) -> None:
    if component.has("DURATION") != component.has("REPEAT"):
        present, absent = ("DURATION", "REPEAT") if component.has("DURATION") else ("REPEAT", "DURATION")
        collector.report(
            ValidationKind.DEPENDENCY,
            component,
            f"{present} requires {absent}; both or neither must be present",
            prop=absent,
        )

    action = component.get("ACTION")
    if action is None or not action.value.items:
        return
    for name in _ALARM_ACTION_REQUIRES.get(str(action.value.items[0]).upper(), ()):
        if not component.has(name):
            collector.missing(
                component,
                name,
                f"VALARM with ACTION:{str(action.value.items[0]).upper()} requires {name}",
            )


__all__ = ["Severity", "ValidationIssue", "ValidationKind", "validate"]
