"""
Rule filter engine: evaluate a FilterSpec against product dicts.

Pure functions only; a product passes when every set filter field holds.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from core.models import FilterSpec, ProductSpec

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")
_STORAGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(GB|TB)", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")


def parse_memory_size(text: Optional[str]) -> Optional[int]:
    """Leading integer of a memory string ("16GB" -> 16), None when there is none."""
    m = _LEADING_INT_RE.match(text or "")
    return int(m.group(1)) if m else None


def parse_storage_size(text: Optional[str]) -> float:
    """Storage in GB with 1 TB = 1000 GB; 0 when the text is missing or unparseable."""
    m = _STORAGE_RE.search(text or "")
    if not m:
        return 0
    size = float(m.group(1))
    return size * 1000 if m.group(2).upper() == "TB" else size


def parse_price(text: Optional[str]) -> Optional[int]:
    """Display price to an integer by dropping every non-digit ("NT$29,900" -> 29900)."""
    digits = _NON_DIGIT_RE.sub("", text or "")
    return int(digits) if digits else None


def _specs_of(product: Mapping[str, Any]) -> ProductSpec:
    specs = product.get("specs")
    if isinstance(specs, ProductSpec):
        return specs
    return ProductSpec.from_dict(specs)


def matches(product: Mapping[str, Any], filters: FilterSpec) -> bool:
    specs = _specs_of(product)

    if filters.product_type and specs.product_type != filters.product_type:
        return False
    if filters.chip and specs.chip != filters.chip:
        return False
    if filters.color and specs.color != filters.color:
        return False

    if filters.min_memory:
        memory = parse_memory_size(specs.memory)
        if memory is None or memory < filters.min_memory:
            return False

    if filters.min_storage:
        if parse_storage_size(specs.storage) < parse_storage_size(filters.min_storage):
            return False

    if filters.max_price:
        price = parse_price(product.get("price"))
        if price is None or price > filters.max_price:
            return False

    return True


def filter_products(
    products: Iterable[Mapping[str, Any]],
    filters: Union[FilterSpec, Mapping[str, Any], None],
) -> List[Dict]:
    """
    Return the products satisfying every set field of `filters`, in input order.

    `filters` may be a FilterSpec or a rule's filter dict (camelCase or snake_case).
    """
    if not isinstance(filters, FilterSpec):
        filters = FilterSpec.from_dict(filters)
    return [p for p in products if matches(p, filters)]


__all__ = [
    "parse_memory_size",
    "parse_storage_size",
    "parse_price",
    "matches",
    "filter_products",
]
