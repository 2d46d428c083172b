"""Generate a sample catalog document for `catalogsync apply`.

Writes a YAML file with properties, events referencing them by name, and
tracking plans referencing events by name.

Usage:
  python scripts/generate_sample_catalog.py --events 8 --out data/samples/catalog.yaml
"""

from __future__ import annotations

import argparse
import random
from pathlib import Path
from typing import Any, Dict, List

import yaml

_PROPERTIES = [
    ("user_id", "string", "Stable identifier of the acting user"),
    ("age", "number", "User age in years"),
    ("plan", "string", "Billing plan at the time of the event"),
    ("country", "string", "ISO country code"),
    ("is_trial", "boolean", "Whether the account is in its trial period"),
    ("cart_value", "number", "Cart total in account currency"),
    ("referrer", "string", "Referring URL or campaign"),
]

_EVENT_NAMES = [
    "signup",
    "login",
    "logout",
    "page_viewed",
    "search_performed",
    "item_added_to_cart",
    "checkout_started",
    "order_completed",
    "subscription_upgraded",
    "subscription_cancelled",
]

_PLANS = [
    ("onboarding", "First-run activation funnel"),
    ("commerce", "Cart and checkout instrumentation"),
    ("retention", "Session and subscription lifecycle"),
]


def build_catalog(events: int, *, seed: int = 42) -> Dict[str, Any]:
    random.seed(seed)

    properties = [{"name": n, "type": t, "description": d} for n, t, d in _PROPERTIES]
    property_names = [p["name"] for p in properties]

    event_docs: List[Dict[str, Any]] = []
    for name in _EVENT_NAMES[: max(1, min(events, len(_EVENT_NAMES)))]:
        refs = ["user_id"] + random.sample(property_names[1:], k=random.randint(0, 3))
        event_docs.append(
            {
                "name": name,
                "type": "track" if name not in ("page_viewed",) else "page",
                "description": name.replace("_", " ").capitalize(),
                "properties": refs,
            }
        )

    event_names = [e["name"] for e in event_docs]
    plans = [
        {
            "name": name,
            "description": description,
            "events": sorted(random.sample(event_names, k=random.randint(1, len(event_names)))),
        }
        for name, description in _PLANS
    ]

    return {"properties": properties, "events": event_docs, "tracking_plans": plans}


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--events", type=int, default=8)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--out", type=str, default="data/samples/catalog.yaml")
    args = parser.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(yaml.safe_dump(build_catalog(args.events, seed=args.seed), sort_keys=False), encoding="utf-8")
    print(f"Wrote sample catalog to {out}")


if __name__ == "__main__":
    main()
