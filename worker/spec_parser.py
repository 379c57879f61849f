"""
Turn storefront listing text into a ProductSpec.

Every field is driven by an ordered list of (pattern, extractor) pairs, first match wins.
Fields are independent: a miss on one never affects another.
"""
from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Tuple

from core.models import ProductSpec

Extractor = Callable[["re.Match[str]"], str]
Rule = Tuple["re.Pattern[str]", Extractor]

PRODUCT_TYPES = (
    "MacBook Air",
    "MacBook Pro",
    "Mac Studio",
    "Mac mini",
    "Mac Pro",
    "iMac",
    "iPad Pro",
    "iPad Air",
    "iPad mini",
    "iPad",
    "Apple TV",
)

COLORS = ("銀色", "太空灰色", "太空黑色", "星光色", "午夜色", "天藍色")

_CHIP = r"M\d+(?:\s+(?:Pro|Max|Ultra))?"


def _clean_chip(m: "re.Match[str]") -> str:
    return m.group(1).replace("Apple ", "").replace("晶片", "").strip()


def _gb(m: "re.Match[str]") -> str:
    return f"{m.group(1)}GB"


def _tb(m: "re.Match[str]") -> str:
    return f"{m.group(1)}TB"


CHIP_RULES: List[Rule] = [
    (re.compile(rf"Apple ({_CHIP})"), _clean_chip),
    (re.compile(rf"({_CHIP})\s*晶片"), _clean_chip),
    (re.compile(rf"(?<![A-Za-z0-9])({_CHIP})"), _clean_chip),
]

SCREEN_SIZE_RULES: List[Rule] = [
    (re.compile(r"(?<![\d.])(\d+)(?![\d.])\s*吋"), lambda m: f"{m.group(1)}吋"),
]

MEMORY_RULES: List[Rule] = [
    (re.compile(r"(\d+)GB\s*統一記憶體"), _gb),
    (re.compile(r"(\d+)GB\s*記憶體"), _gb),
    (re.compile(r"(\d+)\s*GB"), _gb),
]

STORAGE_RULES: List[Rule] = [
    (re.compile(r"(\d+(?:\.\d+)?)\s*TB"), _tb),
    (re.compile(r"(\d+)\s*GB\s*SSD"), _gb),
    (re.compile(r"(\d+)\s*GB\s*儲存"), _gb),
]


def _normalize(text: Optional[str]) -> str:
    return (text or "").replace("\u00a0", " ")


def _first_match(rules: Sequence[Rule], texts: Sequence[str]) -> Optional[str]:
    """Try each rule against every text in order before moving on to the next rule."""
    for pattern, extract in rules:
        for text in texts:
            m = pattern.search(text)
            if m:
                return extract(m)
    return None


def _first_contained(candidates: Sequence[str], text: str) -> Optional[str]:
    for candidate in candidates:
        if candidate in text:
            return candidate
    return None


def parse_specs(name: Optional[str], description: Optional[str], category: Optional[str] = None) -> ProductSpec:
    """
    Extract a ProductSpec from a listing's name and description.

    Chip is looked up in the name before the description; memory and storage in the
    description before the name. Product type, screen size and colour come from the name only.
    """
    name = _normalize(name)
    description = _normalize(description)

    return ProductSpec(
        screen_size=_first_match(SCREEN_SIZE_RULES, [name]),
        chip=_first_match(CHIP_RULES, [name, description]),
        memory=_first_match(MEMORY_RULES, [description, name]),
        storage=_first_match(STORAGE_RULES, [description, name]),
        color=_first_contained(COLORS, name),
        product_type=_first_contained(PRODUCT_TYPES, name),
        category=category or "Other",
    )


__all__ = ["PRODUCT_TYPES", "COLORS", "parse_specs"]
