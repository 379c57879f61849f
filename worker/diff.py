"""
New-product detection against stored history.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from core.product_keys import product_key


def detect_new(current: Iterable[Dict], history: Optional[Mapping[str, object]]) -> List[Dict]:
    """
    Products of `current` whose ProductKey is absent from `history`, in `current` order.

    `history=None` means history could not be loaded and nothing is reported as new.
    Field changes on known products never make them new. Listings sharing a key are
    all kept; `build_matches` collapses them per user.
    """
    if history is None:
        return []

    new_products: List[Dict] = []
    for product in current:
        key = product.get("product_key") or product_key(product.get("url") or "")
        if key not in history:
            new_products.append(product)
    return new_products


__all__ = ["detect_new"]
