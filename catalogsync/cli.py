"""Command line access to the catalog.

Examples:
  catalogsync list events
  catalogsync create-property --name age --type number --description "user age"
  catalogsync create-event --name signup --type track --description "user signed up" --property-id p1
  catalogsync delete events e1
  catalogsync apply catalog.yaml

Every command reads through a view synchronizer, so writes are followed by a
full reload and failures print the same "Error <status>: <message>" text.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable, Dict, List, Optional

from .catalog_file import CatalogApplyError, apply_catalog, load_catalog_file
from .client import CatalogClient
from .config import settings
from .error_messages import normalize_error
from .errors import CatalogError
from .forms import EventForm, PropertyForm, TrackingPlanForm
from .logging_setup import setup_logging
from .schema import resolve_resource
from .sync import CatalogViews, SyncState, ViewSynchronizer, always_confirm


def prompt_confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _emit(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str))


def _emit_snapshot(view: ViewSynchronizer) -> None:
    _emit([item.to_dict() for item in view.snapshot])


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def _loaded(view: ViewSynchronizer) -> Optional[str]:
    """Load the view if needed; return the error message when it failed."""

    view.activate()
    return view.error_message


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalogsync", description="Manage events, properties and tracking plans.")
    parser.add_argument("--base-url", default=None, help="Catalog API base URL (default: CATALOG_API_BASE_URL).")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: CATALOG_REQUEST_TIMEOUT_SECONDS, else none).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List a collection.")
    p.add_argument("resource", help="events | properties | plans")

    p = sub.add_parser("get", help="Fetch one resource by id.")
    p.add_argument("resource")
    p.add_argument("id")

    p = sub.add_parser("create-property", help="Create a property.")
    p.add_argument("--name", default="")
    p.add_argument("--type", default="")
    p.add_argument("--description", default="")

    p = sub.add_parser("create-event", help="Create an event embedding the selected properties.")
    p.add_argument("--name", default="")
    p.add_argument("--type", default="")
    p.add_argument("--description", default="")
    p.add_argument("--property-id", dest="property_ids", action="append", default=[])

    p = sub.add_parser("create-plan", help="Create a tracking plan embedding the selected events.")
    p.add_argument("--name", default="")
    p.add_argument("--description", default="")
    p.add_argument("--event-id", dest="event_ids", action="append", default=[])

    p = sub.add_parser("delete", help="Delete a resource by id.")
    p.add_argument("resource")
    p.add_argument("id")
    p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")

    p = sub.add_parser("apply", help="Create every resource described in a catalog YAML file.")
    p.add_argument("path")

    return parser


def _cmd_list(views: CatalogViews, args: argparse.Namespace) -> int:
    view = views.for_resource(resolve_resource(args.resource))
    error = _loaded(view)
    if error:
        return _fail(error)
    _emit_snapshot(view)
    return 0


def _cmd_get(views: CatalogViews, args: argparse.Namespace) -> int:
    resource = resolve_resource(args.resource)
    client = views.for_resource(resource).client
    try:
        envelope = client.get(resource, args.id)
    except CatalogError as e:
        return _fail(normalize_error(e, operation="fetch", subject=resource.singular))
    _emit(envelope.data.to_dict())
    return 0


def _create_with(view: ViewSynchronizer, payload: Any) -> int:
    created = view.submit_create(payload)
    if created is None:
        return _fail(view.error_message or "")
    _emit(created.to_dict())
    if view.state is SyncState.FAILED:
        # Created, but the follow-up reload failed.
        return _fail(view.error_message or "")
    return 0


def _cmd_create_property(views: CatalogViews, args: argparse.Namespace) -> int:
    form = PropertyForm.from_mapping(vars(args))
    return _create_with(views.properties, form.to_payload())


def _cmd_create_event(views: CatalogViews, args: argparse.Namespace) -> int:
    form = EventForm.from_mapping(vars(args))
    if form.property_ids:
        error = _loaded(views.properties)
        if error:
            return _fail(error)
    return _create_with(views.events, form.to_payload(views.properties.snapshot))


def _cmd_create_plan(views: CatalogViews, args: argparse.Namespace) -> int:
    form = TrackingPlanForm.from_mapping(vars(args))
    if form.event_ids:
        error = _loaded(views.events)
        if error:
            return _fail(error)
    return _create_with(views.tracking_plans, form.to_payload(views.events.snapshot))


def _cmd_delete(views: CatalogViews, args: argparse.Namespace) -> int:
    view = views.for_resource(resolve_resource(args.resource))
    if not view.submit_delete(args.id):
        if view.error_message:
            return _fail(view.error_message)
        print("Delete cancelled.", file=sys.stderr)
        return 0
    if view.state is not SyncState.READY:
        _emit({"deleted": args.id})
        return _fail(view.error_message or "")
    _emit({"deleted": args.id, "remaining": len(view.snapshot)})
    return 0


def _cmd_apply(views: CatalogViews, args: argparse.Namespace) -> int:
    document = load_catalog_file(args.path)
    try:
        result = apply_catalog(document, views)
    except CatalogApplyError as e:
        print(json.dumps({"created": e.created.to_dict()}, indent=2), file=sys.stderr)
        return _fail(str(e))
    _emit({"created": result.to_dict()})
    return 0


_COMMANDS: Dict[str, Callable[[CatalogViews, argparse.Namespace], int]] = {
    "list": _cmd_list,
    "get": _cmd_get,
    "create-property": _cmd_create_property,
    "create-event": _cmd_create_event,
    "create-plan": _cmd_create_plan,
    "delete": _cmd_delete,
    "apply": _cmd_apply,
}


def main(argv: Optional[List[str]] = None, *, client: Optional[CatalogClient] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    confirm = always_confirm if getattr(args, "yes", False) else prompt_confirm
    try:
        client = client or CatalogClient(args.base_url, timeout_seconds=args.timeout)
        views = CatalogViews(client, confirm=confirm)
        return _COMMANDS[args.command](views, args)
    except (OSError, ValueError) as e:
        return _fail(str(e))


if __name__ == "__main__":
    raise SystemExit(main())
