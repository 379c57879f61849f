"""
Best-effort URL shortening through TinyURL.
"""
from __future__ import annotations

import logging

import httpx

from core import config

log = logging.getLogger("notify")

TINYURL_API = "https://tinyurl.com/api-create.php"


def shorten_url(url: str) -> str:
    """Return a tinyurl.com link for `url`, or `url` itself on any failure or when disabled."""
    if not url or not config.SHORTEN_URLS:
        return url
    try:
        resp = httpx.get(TINYURL_API, params={"url": url}, timeout=config.SHORTENER_TIMEOUT_SECONDS)
        short = resp.text.strip()
        if resp.status_code == 200 and short.startswith("https://tinyurl.com/"):
            return short
        log.warning("Shortener returned unexpected response", extra={"status": resp.status_code})
    except Exception as e:
        log.warning("URL shortening failed", extra={"url": url, "error": str(e)})
    return url


__all__ = ["shorten_url", "TINYURL_API"]
