"""
Stable product identity derived from storefront URLs.

The storefront decorates product links with per-visit query parameters
(`?fnode=...`), so the query string is never part of a product's identity.
"""
from __future__ import annotations

import re

_SCHEME_HOST_RE = re.compile(r"^https?://[^/]+", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")


def product_key(url: str) -> str:
    """Return the URL with everything from the first `?` removed."""
    return (url or "").split("?", 1)[0]


def product_id(key: str) -> str:
    """Storage-safe document id for a product key (host dropped, punctuation collapsed)."""
    path = _SCHEME_HOST_RE.sub("", key or "")
    return _NON_ALNUM_RE.sub("_", path).strip("_")


__all__ = ["product_key", "product_id"]
