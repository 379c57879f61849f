"""
Value objects shared by the scraper, the rule engine and the store.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

CATEGORIES = ("Mac", "iPad", "AppleTV", "Other")


@dataclass(frozen=True)
class ProductSpec:
    """Attributes extracted from a listing's text. None means "not found in the text"."""

    screen_size: Optional[str] = None
    chip: Optional[str] = None
    memory: Optional[str] = None
    storage: Optional[str] = None
    color: Optional[str] = None
    product_type: Optional[str] = None
    category: str = "Other"

    def as_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ProductSpec":
        data = data or {}
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if not values.get("category"):
            values["category"] = "Other"
        return cls(**values)


# camelCase keys accepted from the web UI / legacy rule documents
_FILTER_ALIASES = {
    "productType": "product_type",
    "minMemory": "min_memory",
    "minStorage": "min_storage",
    "maxPrice": "max_price",
}


def _blank(value: Any) -> bool:
    return value is None or value == "" or value == 0 or value is False


def _as_int(name: str, value: Any) -> Optional[int]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be a whole number, got {value!r}")
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a whole number, got {value!r}") from exc


def _as_text(value: Any) -> Optional[str]:
    if _blank(value):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class FilterSpec:
    """
    A rule's predicate. Every field is optional; absent fields impose no constraint
    and present ones are AND-combined.
    """

    product_type: Optional[str] = None
    chip: Optional[str] = None
    color: Optional[str] = None
    min_memory: Optional[int] = None
    min_storage: Optional[str] = None
    max_price: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "FilterSpec":
        """
        Build a FilterSpec from a rule document.

        Accepts camelCase or snake_case keys, ignores unknown keys and treats
        empty values as absent. Raises ValueError for non-numeric min_memory/max_price.
        """
        normalized: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            normalized[_FILTER_ALIASES.get(key, key)] = value

        return cls(
            product_type=_as_text(normalized.get("product_type")),
            chip=_as_text(normalized.get("chip")),
            color=_as_text(normalized.get("color")),
            min_memory=_as_int("min_memory", normalized.get("min_memory")),
            min_storage=_as_text(normalized.get("min_storage")),
            max_price=_as_int("max_price", normalized.get("max_price")),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Only the fields that are set."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def is_empty(self) -> bool:
        return not self.as_dict()


__all__ = ["CATEGORIES", "ProductSpec", "FilterSpec"]
