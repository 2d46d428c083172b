"""Resource shapes for the catalog.

Three independently addressable collections live behind the remote authority:

- properties: `{id, name, type, description}`
- events: `{id, name, type, description, propertyIds}`
- tracking plans: `{id, name, description, eventIds}`

Reads are normalized by id (`propertyIds`, `eventIds`); creates are
denormalized by value (embedded `{name, type, description}` triples, see
`references.py`). References are advisory only: a deleted property may still
be listed in an event's `propertyIds`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple


def _require_mapping(d: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(d, Mapping):
        raise ValueError(f"{kind} must be an object/dict. Got: {type(d).__name__}")
    return d


def _require_id(d: Mapping[str, Any], kind: str) -> str:
    v = d.get("id")
    if not isinstance(v, str) or not v:
        raise ValueError(f"{kind} is missing a non-empty string 'id'.")
    return v


def _require_text(d: Mapping[str, Any], key: str, kind: str) -> str:
    if key not in d:
        raise ValueError(f"{kind} is missing required field {key!r}.")
    v = d[key]
    if not isinstance(v, str):
        raise ValueError(f"{kind} field {key!r} must be a string.")
    return v


def _optional_text(d: Mapping[str, Any], key: str) -> Optional[str]:
    v = d.get(key)
    if v is None:
        return None
    return str(v)


def _id_list(d: Mapping[str, Any], key: str, kind: str) -> Tuple[str, ...]:
    raw = d.get(key)
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
        raise ValueError(f"{kind} field {key!r} must be a list of identifier strings.")
    return tuple(raw)


def _with_times(out: Dict[str, Any], create_time: Optional[str], update_time: Optional[str]) -> Dict[str, Any]:
    if create_time is not None:
        out["createTime"] = create_time
    if update_time is not None:
        out["updateTime"] = update_time
    return out


@dataclass(frozen=True)
class ReferenceTriple:
    """Embedded value form of a referenced property or event."""

    name: str
    type: str
    description: str

    @staticmethod
    def empty() -> "ReferenceTriple":
        return ReferenceTriple(name="", type="", description="")

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type, "description": self.description}


@dataclass(frozen=True)
class Property:
    id: str
    name: str
    type: str
    description: str
    create_time: Optional[str] = None
    update_time: Optional[str] = None

    @staticmethod
    def from_dict(d: Any) -> "Property":
        m = _require_mapping(d, "Property")
        return Property(
            id=_require_id(m, "Property"),
            name=_require_text(m, "name", "Property"),
            type=_require_text(m, "type", "Property"),
            description=_require_text(m, "description", "Property"),
            create_time=_optional_text(m, "createTime"),
            update_time=_optional_text(m, "updateTime"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type, "description": self.description}
        return _with_times(out, self.create_time, self.update_time)

    def to_reference(self) -> ReferenceTriple:
        return ReferenceTriple(name=self.name, type=self.type, description=self.description)


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    type: str
    description: str
    property_ids: Tuple[str, ...] = ()
    create_time: Optional[str] = None
    update_time: Optional[str] = None

    @staticmethod
    def from_dict(d: Any) -> "Event":
        m = _require_mapping(d, "Event")
        return Event(
            id=_require_id(m, "Event"),
            name=_require_text(m, "name", "Event"),
            type=_require_text(m, "type", "Event"),
            description=_require_text(m, "description", "Event"),
            property_ids=_id_list(m, "propertyIds", "Event"),
            create_time=_optional_text(m, "createTime"),
            update_time=_optional_text(m, "updateTime"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "propertyIds": list(self.property_ids),
        }
        return _with_times(out, self.create_time, self.update_time)

    def to_reference(self) -> ReferenceTriple:
        return ReferenceTriple(name=self.name, type=self.type, description=self.description)


@dataclass(frozen=True)
class TrackingPlan:
    id: str
    name: str
    description: str
    event_ids: Tuple[str, ...] = ()
    create_time: Optional[str] = None
    update_time: Optional[str] = None

    @staticmethod
    def from_dict(d: Any) -> "TrackingPlan":
        m = _require_mapping(d, "TrackingPlan")
        return TrackingPlan(
            id=_require_id(m, "TrackingPlan"),
            name=_require_text(m, "name", "TrackingPlan"),
            description=_require_text(m, "description", "TrackingPlan"),
            event_ids=_id_list(m, "eventIds", "TrackingPlan"),
            create_time=_optional_text(m, "createTime"),
            update_time=_optional_text(m, "updateTime"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "eventIds": list(self.event_ids),
        }
        return _with_times(out, self.create_time, self.update_time)


@dataclass(frozen=True)
class ResourceSpec:
    """How one catalog collection is addressed and described."""

    key: str
    path: str
    singular: str
    plural: str
    parse: Callable[[Any], Any]
    # Create payload field holding embedded reference triples (None: no references).
    reference_field: Optional[str] = None
    # Read-model field holding reference identifiers.
    reference_ids_field: Optional[str] = None


PROPERTIES = ResourceSpec(
    key="properties",
    path="/properties",
    singular="property",
    plural="properties",
    parse=Property.from_dict,
)

EVENTS = ResourceSpec(
    key="events",
    path="/events",
    singular="event",
    plural="events",
    parse=Event.from_dict,
    reference_field="properties",
    reference_ids_field="propertyIds",
)

TRACKING_PLANS = ResourceSpec(
    key="plans",
    path="/plans",
    singular="tracking plan",
    plural="tracking plans",
    parse=TrackingPlan.from_dict,
    reference_field="events",
    reference_ids_field="eventIds",
)

RESOURCES: Dict[str, ResourceSpec] = {spec.key: spec for spec in (EVENTS, PROPERTIES, TRACKING_PLANS)}

_ALIASES: Dict[str, str] = {
    "event": "events",
    "property": "properties",
    "plan": "plans",
    "tracking-plans": "plans",
    "tracking_plans": "plans",
    "trackingplans": "plans",
}


def resolve_resource(name: str) -> ResourceSpec:
    """Look up a ResourceSpec by key or alias (case-insensitive)."""

    k = (name or "").strip().lower()
    k = _ALIASES.get(k, k)
    spec = RESOURCES.get(k)
    if spec is None:
        raise ValueError(f"Unknown catalog resource {name!r}. Expected one of {sorted(RESOURCES)}")
    return spec
