"""Per-collection view synchronizers.

Each synchronizer owns one snapshot (the list it last loaded) plus its
loading/error flags and walks this state machine:

    idle -> loading -> ready | failed
    ready | failed -> loading  (every reload)

Writes never patch the snapshot. A successful create/update/delete always
triggers a full reload; a failed one sets the error and leaves the snapshot
exactly as it was. Deletes pass through a yes/no confirm gate first.

The three collections get three independent instances (`CatalogViews`); they
share the client and nothing else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple

from .client import CatalogClient
from .error_messages import normalize_error
from .errors import CatalogError
from .logging_setup import operation_context
from .schema import EVENTS, PROPERTIES, TRACKING_PLANS, ResourceSpec

logger = logging.getLogger(__name__)

ConfirmGate = Callable[[str], bool]


def always_confirm(prompt: str) -> bool:
    return True


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncView:
    """What the presentation layer binds to."""

    snapshot: Tuple[Any, ...]
    is_loading: bool
    error_message: Optional[str]


class ViewSynchronizer:
    def __init__(self, client: CatalogClient, resource: ResourceSpec, *, confirm: ConfirmGate) -> None:
        self.client = client
        self.resource = resource
        self._confirm = confirm
        self._snapshot: Tuple[Any, ...] = ()
        self._state = SyncState.IDLE
        self._error_message: Optional[str] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def snapshot(self) -> Tuple[Any, ...]:
        return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self._state is SyncState.LOADING

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    def view(self) -> SyncView:
        return SyncView(snapshot=self._snapshot, is_loading=self.is_loading, error_message=self._error_message)

    def _fail(self, failure: CatalogError, *, operation: str, subject: str) -> None:
        self._error_message = normalize_error(failure, operation=operation, subject=subject)
        self._state = SyncState.FAILED
        logger.warning(
            "Catalog %s failed: %s",
            operation,
            self._error_message,
            extra={"status_code": failure.status_code},
        )

    # -----------------------------
    # Loading
    # -----------------------------

    def activate(self) -> bool:
        """Load on first activation only. Returns True when a load was issued."""

        if self._state is not SyncState.IDLE:
            return False
        self.reload()
        return True

    def reload(self) -> bool:
        """Replace the snapshot with a fresh `list`. Returns True on success."""

        self._state = SyncState.LOADING
        with operation_context(self.resource.key, "fetch"):
            try:
                envelope = self.client.list(self.resource)
            except CatalogError as e:
                self._fail(e, operation="fetch", subject=self.resource.plural)
                return False

        self._snapshot = tuple(envelope.data)
        self._error_message = None
        self._state = SyncState.READY
        return True

    # -----------------------------
    # Mutations
    # -----------------------------

    def submit_create(self, payload: Mapping[str, Any]) -> Optional[Any]:
        """Create a resource, then reload. Returns the created resource or None on failure."""

        with operation_context(self.resource.key, "create"):
            try:
                envelope = self.client.create(self.resource, payload)
            except CatalogError as e:
                self._fail(e, operation="create", subject=self.resource.singular)
                return None
        self.reload()
        return envelope.data

    def submit_update(self, resource_id: str, payload: Mapping[str, Any]) -> Optional[Any]:
        with operation_context(self.resource.key, "update"):
            try:
                envelope = self.client.update(self.resource, resource_id, payload)
            except CatalogError as e:
                self._fail(e, operation="update", subject=self.resource.singular)
                return None
        self.reload()
        return envelope.data

    def submit_delete(self, resource_id: str) -> bool:
        """Delete after confirmation, then reload.

        Returns False when the gate declines (nothing is sent) or the delete fails.
        """

        if not self._confirm(f"Are you sure you want to delete this {self.resource.singular}?"):
            logger.info("Delete declined", extra={"resource": self.resource.key, "resource_id": resource_id})
            return False

        with operation_context(self.resource.key, "delete"):
            try:
                self.client.delete(self.resource, resource_id)
            except CatalogError as e:
                self._fail(e, operation="delete", subject=self.resource.singular)
                return False
        self.reload()
        return True


class CatalogViews:
    """One independent synchronizer per catalog collection."""

    def __init__(self, client: CatalogClient, *, confirm: ConfirmGate) -> None:
        self.events = ViewSynchronizer(client, EVENTS, confirm=confirm)
        self.properties = ViewSynchronizer(client, PROPERTIES, confirm=confirm)
        self.tracking_plans = ViewSynchronizer(client, TRACKING_PLANS, confirm=confirm)

    def for_resource(self, resource: ResourceSpec) -> ViewSynchronizer:
        return {
            EVENTS.key: self.events,
            PROPERTIES.key: self.properties,
            TRACKING_PLANS.key: self.tracking_plans,
        }[resource.key]
