"""Pytest configuration.

Adds the repo root to sys.path so `import catalogsync` works without an
editable install, and provides an in-memory catalog authority mounted on a
`requests.Session` as a transport adapter. Tests exercise the real client
code path (URL building, JSON bodies, status handling) without a network.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from catalogsync.client import CatalogClient  # noqa: E402
from catalogsync.sync import CatalogViews  # noqa: E402


BASE_URL = "http://catalog.test/api"

_REASONS = {200: "OK", 201: "Created", 400: "Bad Request", 404: "Not Found", 500: "Internal Server Error"}


class FakeAuthority(BaseAdapter):
    """A tiny catalog server speaking the `{success, data|message}` envelope."""

    _PREFIX = {"events": "e", "properties": "p", "plans": "tp"}

    def __init__(self) -> None:
        super().__init__()
        self.store: Dict[str, Dict[str, Dict[str, Any]]] = {k: {} for k in self._PREFIX}
        self.counters: Dict[str, int] = {k: 0 for k in self._PREFIX}
        self.requests: List[Tuple[str, str, Any]] = []
        self._scripted: List[Any] = []

    # -- scripting helpers ---------------------------------------------

    def fail_next(
        self, status: int, body: Any = None, *, raw: Optional[bytes] = None, method: Optional[str] = None
    ) -> None:
        """Answer the next request (or the next one using `method`) with `status`."""
        self._scripted.append((method, "response", status, body, raw))

    def break_next(self, exc: Exception, *, method: Optional[str] = None) -> None:
        self._scripted.append((method, "raise", exc))

    def _next_step(self, method: str) -> Optional[Tuple[Any, ...]]:
        for i, step in enumerate(self._scripted):
            if step[0] is None or step[0] == method:
                return self._scripted.pop(i)[1:]
        return None

    def seed(self, resource: str, **fields: Any) -> Dict[str, Any]:
        self.counters[resource] += 1
        item = {"id": f"{self._PREFIX[resource]}{self.counters[resource]}", **fields}
        if resource == "events":
            item.setdefault("propertyIds", [])
        if resource == "plans":
            item.setdefault("eventIds", [])
        self.store[resource][item["id"]] = item
        return item

    # -- adapter ---------------------------------------------------------

    def _response(self, request: requests.PreparedRequest, status: int, body: Any, raw: Optional[bytes] = None):
        resp = requests.Response()
        resp.status_code = status
        resp.reason = _REASONS.get(status, "")
        resp._content = raw if raw is not None else json.dumps(body).encode("utf-8")
        resp.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        return resp

    def _refs_to_ids(self, resource: str, refs: List[Dict[str, str]]) -> List[str]:
        out = []
        for ref in refs:
            for item in self.store[resource].values():
                if item["name"] == ref.get("name") and item.get("type") == ref.get("type"):
                    out.append(item["id"])
                    break
        return out

    def send(self, request, **kwargs):  # noqa: D401
        body = json.loads(request.body) if request.body else None
        self.requests.append((request.method, request.url, body))

        step = self._next_step(request.method)
        if step is not None:
            if step[0] == "raise":
                raise step[1]
            _, status, scripted_body, raw = step
            return self._response(request, status, scripted_body, raw)

        parts = [unquote(p) for p in urlparse(request.url).path.split("/") if p]
        # ["api", "<resource>", "<id>"?]
        resource = parts[1]
        item_id = parts[2] if len(parts) > 2 else None
        items = self.store[resource]

        if request.method == "GET" and item_id is None:
            return self._response(request, 200, {"success": True, "data": list(items.values())})

        if request.method == "POST":
            fields = dict(body)
            if resource == "events":
                fields["propertyIds"] = self._refs_to_ids("properties", fields.pop("properties", []))
            if resource == "plans":
                fields["eventIds"] = self._refs_to_ids("events", fields.pop("events", []))
            fields["createTime"] = fields["updateTime"] = "2026-10-19T00:00:00Z"
            created = self.seed(resource, **fields)
            return self._response(request, 201, {"success": True, "data": created})

        if item_id not in items:
            return self._response(request, 404, {"success": False, "message": f"{resource} not found"})

        if request.method == "GET":
            return self._response(request, 200, {"success": True, "data": items[item_id]})
        if request.method == "PUT":
            items[item_id].update(body or {})
            return self._response(request, 200, {"success": True, "data": items[item_id]})
        if request.method == "DELETE":
            del items[item_id]
            return self._response(request, 200, {"success": True, "message": "deleted"})

        return self._response(request, 400, {"success": False, "error": "unsupported"})

    def close(self) -> None:
        pass


@pytest.fixture()
def authority() -> FakeAuthority:
    return FakeAuthority()


@pytest.fixture()
def client(authority: FakeAuthority) -> CatalogClient:
    session = requests.Session()
    session.mount("http://catalog.test/", authority)
    return CatalogClient(BASE_URL, session=session)


@pytest.fixture()
def views(client: CatalogClient) -> CatalogViews:
    return CatalogViews(client, confirm=lambda prompt: True)
