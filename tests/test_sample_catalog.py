from __future__ import annotations

import importlib.util
from pathlib import Path

import yaml

from catalogsync.catalog_file import validate_catalog_dict

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "generate_sample_catalog.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("generate_sample_catalog", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_sample_catalog_is_a_valid_document() -> None:
    catalog = _load_script().build_catalog(5, seed=7)
    doc = validate_catalog_dict(yaml.safe_load(yaml.safe_dump(catalog)))
    assert len(doc.events) == 5
    assert all("user_id" in e.properties for e in doc.events)
    assert {p.name for p in doc.tracking_plans} == {"onboarding", "commerce", "retention"}
