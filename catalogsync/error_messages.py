"""Single point of user-facing error formatting.

Every fetch and mutation path formats failures here so the displayed text
never diverges between resources:

    Error <status>: <message>

The message comes from the first extractor in `MESSAGE_EXTRACTORS` that
returns a non-empty string; the generic "Failed to <operation> <subject>"
text is the last resort. When no HTTP status is known the status slot reads
`undefined`.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Tuple

import requests

from .errors import CatalogError

UNKNOWN_STATUS = "undefined"

MessageExtractor = Callable[[BaseException], Optional[str]]


def _response_of(failure: BaseException) -> Optional[requests.Response]:
    resp = getattr(failure, "response", None)
    if isinstance(resp, requests.Response):
        return resp
    return None


def failure_status(failure: BaseException) -> Optional[int]:
    if isinstance(failure, CatalogError):
        return failure.status_code
    resp = _response_of(failure)
    if resp is not None:
        return resp.status_code
    return None


def _failure_body(failure: BaseException) -> Any:
    if isinstance(failure, CatalogError):
        return failure.body
    resp = _response_of(failure)
    if resp is None:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def _body_field(field: str) -> MessageExtractor:
    def extract(failure: BaseException) -> Optional[str]:
        body = _failure_body(failure)
        if not isinstance(body, Mapping):
            return None
        v = body.get(field)
        if isinstance(v, str) and v.strip():
            return v
        return None

    extract.__name__ = f"body_{field}"
    return extract


def transport_message(failure: BaseException) -> Optional[str]:
    if isinstance(failure, CatalogError):
        text = failure.transport_message
    else:
        text = str(failure)
    return text if text and text.strip() else None


MESSAGE_EXTRACTORS: Tuple[MessageExtractor, ...] = (
    _body_field("message"),
    _body_field("error"),
    transport_message,
)


def fallback_message(operation: str, subject: str) -> str:
    return f"Failed to {operation} {subject}"


def normalize_error(
    failure: BaseException,
    *,
    operation: str,
    subject: str,
    extractors: Tuple[MessageExtractor, ...] = MESSAGE_EXTRACTORS,
) -> str:
    """Format any failure from the catalog client (or the transport beneath it)."""

    message = None
    for extract in extractors:
        message = extract(failure)
        if message:
            break
    if not message:
        message = fallback_message(operation, subject)

    status = failure_status(failure)
    return f"Error {status if status is not None else UNKNOWN_STATUS}: {message}"
