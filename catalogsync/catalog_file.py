from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

import yaml

from .forms import EventForm, PropertyForm, TrackingPlanForm
from .sync import CatalogViews, SyncState, ViewSynchronizer

logger = logging.getLogger(__name__)


# A catalog document describes resources by *name*; ids only exist once the
# authority has created them, so references are resolved during apply.
#
#   properties:
#     - {name: age, type: number, description: user age}
#   events:
#     - {name: signup, type: track, description: ..., properties: [age]}
#   tracking_plans:
#     - {name: onboarding, description: ..., events: [signup]}

_TOP_LEVEL_KEYS: Tuple[str, ...] = ("properties", "events", "tracking_plans")


class CatalogApplyError(RuntimeError):
    """Raised when a create fails while applying a catalog document."""

    def __init__(self, message: str, *, created: "ApplyResult"):
        super().__init__(message)
        self.created = created


@dataclass(frozen=True)
class PropertyEntry:
    name: str
    type: str
    description: str


@dataclass(frozen=True)
class EventEntry:
    name: str
    type: str
    description: str
    properties: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TrackingPlanEntry:
    name: str
    description: str
    events: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogDocument:
    properties: Tuple[PropertyEntry, ...] = ()
    events: Tuple[EventEntry, ...] = ()
    tracking_plans: Tuple[TrackingPlanEntry, ...] = ()


@dataclass
class ApplyResult:
    properties: List[str] = field(default_factory=list)
    events: List[str] = field(default_factory=list)
    tracking_plans: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"properties": self.properties, "events": self.events, "tracking_plans": self.tracking_plans}


def _entries(d: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    raw = d.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must be a list.")
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"'{key}[{i}]' must be an object/dict.")
    return raw


def _text_field(item: Dict[str, Any], key: str, where: str) -> str:
    v = item.get(key)
    if v is None or not str(v).strip():
        raise ValueError(f"{where} is missing required field {key!r}.")
    return str(v).strip()


def _name_list(item: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    raw = item.get(key) or []
    if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
        raise ValueError(f"{where} field {key!r} must be a list of names.")
    return tuple(v.strip() for v in raw)


def _unique_names(names: Sequence[str], kind: str) -> None:
    seen = set()
    for n in names:
        if n in seen:
            raise ValueError(f"Duplicate {kind} name {n!r} in catalog document.")
        seen.add(n)


def validate_catalog_dict(d: Any) -> CatalogDocument:
    if d is None:
        d = {}
    if not isinstance(d, dict):
        raise ValueError("Catalog YAML must parse to an object/dict.")

    unknown = sorted(set(d) - set(_TOP_LEVEL_KEYS))
    if unknown:
        raise ValueError(f"Unknown top-level keys {unknown}. Allowed: {list(_TOP_LEVEL_KEYS)}")

    properties = tuple(
        PropertyEntry(
            name=_text_field(item, "name", f"properties[{i}]"),
            type=_text_field(item, "type", f"properties[{i}]"),
            description=_text_field(item, "description", f"properties[{i}]"),
        )
        for i, item in enumerate(_entries(d, "properties"))
    )
    _unique_names([p.name for p in properties], "property")

    events = tuple(
        EventEntry(
            name=_text_field(item, "name", f"events[{i}]"),
            type=_text_field(item, "type", f"events[{i}]"),
            description=_text_field(item, "description", f"events[{i}]"),
            properties=_name_list(item, "properties", f"events[{i}]"),
        )
        for i, item in enumerate(_entries(d, "events"))
    )
    _unique_names([e.name for e in events], "event")

    plans = tuple(
        TrackingPlanEntry(
            name=_text_field(item, "name", f"tracking_plans[{i}]"),
            description=_text_field(item, "description", f"tracking_plans[{i}]"),
            events=_name_list(item, "events", f"tracking_plans[{i}]"),
        )
        for i, item in enumerate(_entries(d, "tracking_plans"))
    )
    _unique_names([p.name for p in plans], "tracking plan")

    property_names = {p.name for p in properties}
    for e in events:
        for ref in e.properties:
            if ref not in property_names:
                raise ValueError(f"Event {e.name!r} references unknown property {ref!r}.")

    event_names = {e.name for e in events}
    for p in plans:
        for ref in p.events:
            if ref not in event_names:
                raise ValueError(f"Tracking plan {p.name!r} references unknown event {ref!r}.")

    return CatalogDocument(properties=properties, events=events, tracking_plans=plans)


def parse_catalog_yaml(raw_yaml: str) -> CatalogDocument:
    """Parse and validate a catalog YAML string."""

    if not (raw_yaml or "").strip():
        raise ValueError("Catalog YAML is empty.")

    try:
        d = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        raise ValueError(f"Catalog YAML is not valid YAML: {e}") from e
    return validate_catalog_dict(d)


def load_catalog_file(path: str) -> CatalogDocument:
    with open(path, "r", encoding="utf-8") as f:
        return parse_catalog_yaml(f.read())


def _create(view: ViewSynchronizer, payload: Dict[str, Any], result: ApplyResult, bucket: List[str]) -> str:
    created = view.submit_create(payload)
    if created is None:
        raise CatalogApplyError(view.error_message or f"Failed to create {view.resource.singular}", created=result)
    bucket.append(created.id)
    if view.state is SyncState.FAILED:
        # Created, but the follow-up reload failed: later references would resolve
        # against a stale snapshot.
        raise CatalogApplyError(view.error_message or f"Failed to fetch {view.resource.plural}", created=result)
    return created.id


def apply_catalog(document: CatalogDocument, views: CatalogViews) -> ApplyResult:
    """Create every resource in the document, dependencies first.

    Each create goes through the synchronizer, so its snapshot is reloaded
    before the next payload is denormalized against it.
    """

    result = ApplyResult()
    property_ids: Dict[str, str] = {}
    event_ids: Dict[str, str] = {}

    for p in document.properties:
        payload = PropertyForm(name=p.name, type=p.type, description=p.description).to_payload()
        property_ids[p.name] = _create(views.properties, payload, result, result.properties)

    for e in document.events:
        form = EventForm(
            name=e.name,
            type=e.type,
            description=e.description,
            property_ids=[property_ids[n] for n in e.properties],
        )
        event_ids[e.name] = _create(views.events, form.to_payload(views.properties.snapshot), result, result.events)

    for t in document.tracking_plans:
        form = TrackingPlanForm(
            name=t.name,
            description=t.description,
            event_ids=[event_ids[n] for n in t.events],
        )
        _create(views.tracking_plans, form.to_payload(views.events.snapshot), result, result.tracking_plans)

    logger.info(
        "Applied catalog document: %d properties, %d events, %d tracking plans",
        len(result.properties),
        len(result.events),
        len(result.tracking_plans),
    )
    return result
