"""
Product history storage re-exports.
"""
from core.db.products.products_store import (
    count_products,
    get_all_products,
    get_product_history,
    save_product_history,
)

__all__ = [
    "count_products",
    "get_all_products",
    "get_product_history",
    "save_product_history",
]
