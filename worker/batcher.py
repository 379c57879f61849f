"""
Per-user match collection and notification message batching.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from core.product_keys import product_id, product_key
from worker.link_shortener import shorten_url
from worker.rule_filter import filter_products

log = logging.getLogger("notify")

DEFAULT_BATCH_SIZE = 10

_APPLE_PREFIX_RE = re.compile(r"^Apple\s+(?=(?:Mac|iMac|iPad))")
_LEADING_REFURB_RE = re.compile(r"^\s*整修品\s*")
_TRAILING_REFURB_RE = re.compile(r"\s*整修品.*$", re.DOTALL)
_WS_RE = re.compile(r"\s+")


def clean_display_name(name: Optional[str]) -> str:
    """Drop the leading vendor word and the refurbished boilerplate from a listing name."""
    text = _WS_RE.sub(" ", name or "").strip()
    text = _LEADING_REFURB_RE.sub("", text)
    text = _TRAILING_REFURB_RE.sub("", text)
    text = _APPLE_PREFIX_RE.sub("", text.strip())
    return _WS_RE.sub(" ", text).strip()


def _key_of(product: Mapping[str, Any]) -> str:
    return product.get("product_key") or product_key(product.get("url") or "")


def build_matches(new_products: List[Dict], rules: Iterable[Mapping[str, Any]]) -> List[Dict]:
    """
    Apply each enabled rule to `new_products` and merge the results per product.

    Returns `[{"product": ..., "matched_rules": [rule names]}]` deduplicated by ProductKey,
    ordered by first match (rule order, then product order).
    """
    merged: Dict[str, Dict] = {}
    for rule in rules:
        if not rule.get("enabled", True):
            continue
        name = rule.get("name") or f"rule {rule.get('id')}"
        try:
            hits = filter_products(new_products, rule.get("filters") or {})
        except ValueError as e:
            log.warning("Skipping rule with invalid filters", extra={"rule_id": rule.get("id"), "error": str(e)})
            continue

        for product in hits:
            key = _key_of(product)
            entry = merged.get(key)
            if entry is None:
                merged[key] = {"product": product, "matched_rules": [name]}
            elif name not in entry["matched_rules"]:
                entry["matched_rules"].append(name)

    return list(merged.values())


def chunk_matches(matches: List[Dict], batch_size: int = DEFAULT_BATCH_SIZE) -> List[List[Dict]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [matches[i:i + batch_size] for i in range(0, len(matches), batch_size)]


def _safe_shorten(shorten: Callable[[str], str], url: str) -> str:
    try:
        return shorten(url) or url
    except Exception as e:
        log.warning("Link shortening failed, using original URL", extra={"url": url, "error": str(e)})
        return url


def format_batches(
    matches: List[Dict],
    batch_size: int = DEFAULT_BATCH_SIZE,
    shorten: Callable[[str], str] = shorten_url,
) -> List[str]:
    """
    Render matches as notification messages of at most `batch_size` entries.

    Sequence numbers run on across batches; only the first message carries the total.
    """
    batches = chunk_matches(matches, batch_size)
    total_batches = len(batches)
    messages: List[str] = []
    seq = 0

    for index, batch in enumerate(batches, start=1):
        indicator = f" ({index}/{total_batches})" if total_batches > 1 else ""
        if index == 1:
            header = f"🆕 發現 {len(matches)} 個新翻新產品！{indicator}"
        else:
            header = f"📦 新品通知 ({index}/{total_batches})"

        entries: List[str] = []
        for match in batch:
            seq += 1
            product = match["product"]
            lines = [
                f"{seq}. {clean_display_name(product.get('name'))}",
                f"💰 {product.get('price') or ''}",
            ]
            rule_names = match.get("matched_rules") or []
            if rule_names:
                lines.append(f"🎯 符合規則: {'、'.join(rule_names)}")
            url = product.get("url") or ""
            lines.append(f"🔗 {_safe_shorten(shorten, url) if url else url}")
            entries.append("\n".join(lines))

        messages.append(header + "\n\n" + "\n\n".join(entries))

    return messages


def batch_product_ids(batch: Iterable[Dict]) -> List[str]:
    """ProductIds of the products in one batch, for the notification record."""
    return [product_id(_key_of(m["product"])) for m in batch]


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "clean_display_name",
    "build_matches",
    "chunk_matches",
    "format_batches",
    "batch_product_ids",
]
