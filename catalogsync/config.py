from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse


def _optional_float(value: Optional[str]) -> Optional[float]:
    v = (value or "").strip()
    if not v:
        return None
    return float(v)


def normalize_base_url(url: str) -> str:
    """Normalize the catalog API base URL.

    Trailing slashes are dropped so resource paths can be appended as-is.
    Only http(s) URLs are accepted.
    """

    u = (url or "").strip().rstrip("/")
    if not u:
        raise ValueError("Catalog API base URL is required")
    parsed = urlparse(u)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Catalog API base URL must be an http(s) URL. Got: {url!r}")
    return u


@dataclass(frozen=True)
class Settings:
    # -----------------
    # Remote authority
    # -----------------
    api_base_url: str = os.getenv("CATALOG_API_BASE_URL", "http://localhost:3000/api")

    # Unset means the transport default (requests waits indefinitely).
    request_timeout_seconds: Optional[float] = _optional_float(os.getenv("CATALOG_REQUEST_TIMEOUT_SECONDS"))

    # -----------------
    # Logging
    # -----------------
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format: str = os.getenv("LOG_FORMAT", "json").lower()  # json|console


settings = Settings()
