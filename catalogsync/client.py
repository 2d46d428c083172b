"""REST client for the catalog authority.

Remote surface (base path `/api`):

    GET    /events              -> {success, data: Event[]}
    GET    /events/{id}         -> {success, data: Event}
    POST   /events              -> {success, data: Event}
    PUT    /events/{id}         -> {success, data: Event}
    DELETE /events/{id}         -> {success, message}

and the same for `/properties` and `/plans`.

Exactly one attempt per call; there is no retry loop here. Callers that want
retries (none do today) own that policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar
from urllib.parse import quote

import requests

from .config import normalize_base_url, settings
from .errors import NetworkFailure, NotFound, RemoteError, UnexpectedShape
from .logging_setup import operation_context
from .schema import EVENTS, PROPERTIES, TRACKING_PLANS, Event, Property, ResourceSpec, TrackingPlan

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REFERENCE_KEYS = ("name", "type", "description")


@dataclass(frozen=True)
class Envelope(Generic[T]):
    success: bool
    data: T
    message: Optional[str] = None


def _http_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
    return s


def _safe_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _body_message(body: Any) -> str:
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            v = body.get(key)
            if isinstance(v, str) and v:
                return v
    return ""


def validate_create_payload(resource: ResourceSpec, payload: Any) -> Dict[str, Any]:
    """Reject create payloads that are not fully denormalized.

    The authority assigns identifiers and expects embedded reference values,
    so a payload must not carry `id` or identifier-only reference fields.
    """

    if not isinstance(payload, Mapping):
        raise ValueError(f"Create payload for {resource.plural} must be an object/dict.")
    out = dict(payload)

    if "id" in out:
        raise ValueError("Create payloads must not carry a client-supplied 'id'.")

    if resource.reference_ids_field and resource.reference_ids_field in out:
        raise ValueError(
            f"Create payload for {resource.plural} carries identifier references {resource.reference_ids_field!r}; "
            f"embed {resource.reference_field!r} values instead."
        )

    if resource.reference_field and resource.reference_field in out:
        refs = out[resource.reference_field]
        if not isinstance(refs, list):
            raise ValueError(f"{resource.reference_field!r} must be a list of {{name, type, description}} objects.")
        for ref in refs:
            if not isinstance(ref, Mapping) or any(not isinstance(ref.get(k), str) for k in _REFERENCE_KEYS):
                raise ValueError(
                    f"Every entry in {resource.reference_field!r} must be a {{name, type, description}} object."
                )

    return out


class CatalogClient:
    """Typed CRUD calls per catalog resource."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = normalize_base_url(base_url or settings.api_base_url)
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.request_timeout_seconds
        self.session = session or _http_session()

    # -----------------------------
    # Transport
    # -----------------------------

    def _url(self, resource: ResourceSpec, resource_id: Optional[str] = None) -> str:
        url = f"{self.base_url}{resource.path}"
        if resource_id is None:
            return url
        if not isinstance(resource_id, str) or not resource_id:
            raise ValueError(f"A non-empty {resource.singular} id is required.")
        return f"{url}/{quote(resource_id, safe='')}"

    def _request(self, method: str, url: str, *, json_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, json=json_body, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise NetworkFailure(str(e)) from e

        body = _safe_json(resp)

        if not resp.ok:
            error_cls = NotFound if resp.status_code == 404 else RemoteError
            raise error_cls(
                status_code=resp.status_code,
                message=_body_message(body),
                body=body,
                reason=resp.reason or "",
            )

        if body is None:
            raise UnexpectedShape(
                f"Response from {method} {url} was not JSON: {resp.text[:200]!r}",
                status_code=resp.status_code,
            )
        if not isinstance(body, dict):
            raise UnexpectedShape(
                f"Response from {method} {url} was not an envelope object",
                status_code=resp.status_code,
                body=body,
            )
        if body.get("success") is False:
            raise RemoteError(
                status_code=resp.status_code,
                message=_body_message(body),
                body=body,
                reason=resp.reason or "",
            )
        return body

    @staticmethod
    def _data(body: Dict[str, Any], what: str) -> Any:
        if "data" not in body:
            raise UnexpectedShape(f"{what} response envelope is missing 'data'", body=body)
        return body["data"]

    @staticmethod
    def _parse_one(resource: ResourceSpec, raw: Any) -> Any:
        try:
            return resource.parse(raw)
        except ValueError as e:
            raise UnexpectedShape(f"Malformed {resource.singular} in response: {e}", body=raw) from e

    # -----------------------------
    # Generic operations
    # -----------------------------

    def list(self, resource: ResourceSpec) -> Envelope[List[Any]]:
        with operation_context(resource.key, "list"):
            body = self._request("GET", self._url(resource))
            data = self._data(body, f"list {resource.plural}")
            if not isinstance(data, list):
                raise UnexpectedShape(f"list {resource.plural} response 'data' is not a list", body=body)
            items = [self._parse_one(resource, raw) for raw in data]
            logger.debug("Fetched %d %s", len(items), resource.plural)
            return Envelope(success=True, data=items, message=body.get("message"))

    def get(self, resource: ResourceSpec, resource_id: str) -> Envelope[Any]:
        with operation_context(resource.key, "get"):
            body = self._request("GET", self._url(resource, resource_id))
            item = self._parse_one(resource, self._data(body, f"get {resource.singular}"))
            return Envelope(success=True, data=item, message=body.get("message"))

    def create(self, resource: ResourceSpec, payload: Mapping[str, Any]) -> Envelope[Any]:
        with operation_context(resource.key, "create"):
            json_body = validate_create_payload(resource, payload)
            body = self._request("POST", self._url(resource), json_body=json_body)
            item = self._parse_one(resource, self._data(body, f"create {resource.singular}"))
            logger.info("Created %s", resource.singular, extra={"resource_id": item.id})
            return Envelope(success=True, data=item, message=body.get("message"))

    def update(self, resource: ResourceSpec, resource_id: str, payload: Mapping[str, Any]) -> Envelope[Any]:
        with operation_context(resource.key, "update"):
            if not isinstance(payload, Mapping):
                raise ValueError(f"Update payload for {resource.plural} must be an object/dict.")
            body = self._request("PUT", self._url(resource, resource_id), json_body=dict(payload))
            item = self._parse_one(resource, self._data(body, f"update {resource.singular}"))
            logger.info("Updated %s", resource.singular, extra={"resource_id": resource_id})
            return Envelope(success=True, data=item, message=body.get("message"))

    def delete(self, resource: ResourceSpec, resource_id: str) -> Envelope[bool]:
        with operation_context(resource.key, "delete"):
            body = self._request("DELETE", self._url(resource, resource_id))
            logger.info("Deleted %s", resource.singular, extra={"resource_id": resource_id})
            message = body.get("message")
            return Envelope(success=True, data=True, message=str(message) if message is not None else None)

    # -----------------------------
    # Events
    # -----------------------------

    def list_events(self) -> Envelope[List[Event]]:
        return self.list(EVENTS)

    def get_event(self, event_id: str) -> Envelope[Event]:
        return self.get(EVENTS, event_id)

    def create_event(self, payload: Mapping[str, Any]) -> Envelope[Event]:
        return self.create(EVENTS, payload)

    def update_event(self, event_id: str, payload: Mapping[str, Any]) -> Envelope[Event]:
        return self.update(EVENTS, event_id, payload)

    def delete_event(self, event_id: str) -> Envelope[bool]:
        return self.delete(EVENTS, event_id)

    # -----------------------------
    # Properties
    # -----------------------------

    def list_properties(self) -> Envelope[List[Property]]:
        return self.list(PROPERTIES)

    def get_property(self, property_id: str) -> Envelope[Property]:
        return self.get(PROPERTIES, property_id)

    def create_property(self, payload: Mapping[str, Any]) -> Envelope[Property]:
        return self.create(PROPERTIES, payload)

    def update_property(self, property_id: str, payload: Mapping[str, Any]) -> Envelope[Property]:
        return self.update(PROPERTIES, property_id, payload)

    def delete_property(self, property_id: str) -> Envelope[bool]:
        return self.delete(PROPERTIES, property_id)

    # -----------------------------
    # Tracking plans
    # -----------------------------

    def list_tracking_plans(self) -> Envelope[List[TrackingPlan]]:
        return self.list(TRACKING_PLANS)

    def get_tracking_plan(self, plan_id: str) -> Envelope[TrackingPlan]:
        return self.get(TRACKING_PLANS, plan_id)

    def create_tracking_plan(self, payload: Mapping[str, Any]) -> Envelope[TrackingPlan]:
        return self.create(TRACKING_PLANS, payload)

    def update_tracking_plan(self, plan_id: str, payload: Mapping[str, Any]) -> Envelope[TrackingPlan]:
        return self.update(TRACKING_PLANS, plan_id, payload)

    def delete_tracking_plan(self, plan_id: str) -> Envelope[bool]:
        return self.delete(TRACKING_PLANS, plan_id)
