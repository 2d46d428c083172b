"""User-entered form data -> create payloads.

The only client-side validation is "required text fields are non-empty";
everything else is left to the remote authority. Reference selections are
expanded through `references.denormalize` against the snapshot passed in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .references import denormalize, reference_payload
from .schema import Event, Property


class FormValidationError(ValueError):
    """Raised when required form fields are missing or blank."""

    def __init__(self, missing: Sequence[str]):
        self.missing = tuple(missing)
        super().__init__(f"Required fields are empty: {', '.join(self.missing)}")


def _check_required(values: Iterable[Tuple[str, Any]]) -> None:
    missing = [name for name, v in values if not isinstance(v, str) or not v.strip()]
    if missing:
        raise FormValidationError(missing)


def _text(m: Mapping[str, Any], key: str) -> str:
    v = m.get(key)
    return "" if v is None else str(v)


def _ids(m: Mapping[str, Any], key: str) -> List[str]:
    raw = m.get(key) or []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{key!r} must be a list of identifiers.")
    return [str(v) for v in raw]


@dataclass
class PropertyForm:
    name: str = ""
    type: str = ""
    description: str = ""

    @staticmethod
    def from_mapping(m: Mapping[str, Any]) -> "PropertyForm":
        return PropertyForm(name=_text(m, "name"), type=_text(m, "type"), description=_text(m, "description"))

    def to_payload(self) -> Dict[str, Any]:
        _check_required([("name", self.name), ("type", self.type), ("description", self.description)])
        return {"name": self.name.strip(), "type": self.type.strip(), "description": self.description.strip()}


@dataclass
class EventForm:
    name: str = ""
    type: str = ""
    description: str = ""
    property_ids: List[str] = field(default_factory=list)

    @staticmethod
    def from_mapping(m: Mapping[str, Any]) -> "EventForm":
        return EventForm(
            name=_text(m, "name"),
            type=_text(m, "type"),
            description=_text(m, "description"),
            property_ids=_ids(m, "property_ids"),
        )

    def to_payload(self, properties: Iterable[Property]) -> Dict[str, Any]:
        _check_required([("name", self.name), ("type", self.type), ("description", self.description)])
        return {
            "name": self.name.strip(),
            "type": self.type.strip(),
            "description": self.description.strip(),
            "properties": reference_payload(denormalize(self.property_ids, properties)),
        }


@dataclass
class TrackingPlanForm:
    name: str = ""
    description: str = ""
    event_ids: List[str] = field(default_factory=list)

    @staticmethod
    def from_mapping(m: Mapping[str, Any]) -> "TrackingPlanForm":
        return TrackingPlanForm(
            name=_text(m, "name"),
            description=_text(m, "description"),
            event_ids=_ids(m, "event_ids"),
        )

    def to_payload(self, events: Iterable[Event]) -> Dict[str, Any]:
        _check_required([("name", self.name), ("description", self.description)])
        return {
            "name": self.name.strip(),
            "description": self.description.strip(),
            "events": reference_payload(denormalize(self.event_ids, events)),
        }
