from __future__ import annotations

import pytest

from catalogsync.catalog_file import CatalogApplyError, apply_catalog, load_catalog_file, parse_catalog_yaml
from catalogsync.sync import CatalogViews


VALID = """
properties:
  - name: age
    type: number
    description: user age
  - name: plan
    type: string
    description: billing plan
events:
  - name: signup
    type: track
    description: user signed up
    properties: [age, plan]
tracking_plans:
  - name: onboarding
    description: first run funnel
    events: [signup]
"""


def test_parse_valid_document() -> None:
    doc = parse_catalog_yaml(VALID)
    assert [p.name for p in doc.properties] == ["age", "plan"]
    assert doc.events[0].properties == ("age", "plan")
    assert doc.tracking_plans[0].events == ("signup",)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "- just\n- a list\n",
        "widgets: []\n",
        "properties:\n  - name: age\n    type: number\n",  # missing description
        "properties:\n  - {name: a, type: t, description: d}\n  - {name: a, type: t, description: d}\n",
        "events:\n  - {name: e, type: t, description: d, properties: [missing]}\n",
        "tracking_plans:\n  - {name: p, description: d, events: [missing]}\n",
        "properties: [ {name: a\n",  # not YAML
    ],
)
def test_parse_rejects_invalid_documents(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_catalog_yaml(raw)


def test_load_catalog_file(tmp_path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(VALID, encoding="utf-8")
    assert len(load_catalog_file(str(path)).properties) == 2


def test_apply_creates_in_dependency_order(views: CatalogViews, authority) -> None:
    result = apply_catalog(parse_catalog_yaml(VALID), views)

    assert result.to_dict() == {"properties": ["p1", "p2"], "events": ["e1"], "tracking_plans": ["tp1"]}
    assert authority.store["events"]["e1"]["propertyIds"] == ["p1", "p2"]
    assert authority.store["plans"]["tp1"]["eventIds"] == ["e1"]

    posts = [body for method, _, body in authority.requests if method == "POST"]
    assert posts[2]["properties"] == [
        {"name": "age", "type": "number", "description": "user age"},
        {"name": "plan", "type": "string", "description": "billing plan"},
    ]
    assert [t.id for t in views.tracking_plans.snapshot] == ["tp1"]


def test_apply_stops_on_failed_create(views: CatalogViews, authority) -> None:
    authority.seed("properties", name="existing", type="string", description="d")
    doc = parse_catalog_yaml(VALID)
    # First property create succeeds (POST + reload GET), the second is rejected.
    authority.requests.clear()

    original_send = authority.send
    calls = {"n": 0}

    def send(request, **kwargs):
        if request.method == "POST":
            calls["n"] += 1
            if calls["n"] == 2:
                authority.fail_next(400, {"success": False, "message": "duplicate property"})
        return original_send(request, **kwargs)

    authority.send = send

    with pytest.raises(CatalogApplyError) as exc:
        apply_catalog(doc, views)
    assert str(exc.value) == "Error 400: duplicate property"
    assert exc.value.created.properties == ["p2"]
    assert exc.value.created.events == []


def test_apply_stops_when_reload_after_create_fails(views: CatalogViews, authority) -> None:
    authority.fail_next(500, {"success": False, "message": "list down"}, method="GET")

    with pytest.raises(CatalogApplyError) as exc:
        apply_catalog(parse_catalog_yaml(VALID), views)
    assert str(exc.value) == "Error 500: list down"
    assert exc.value.created.properties == ["p1"]
    assert [m for m, _, _ in authority.requests] == ["POST", "GET"]
