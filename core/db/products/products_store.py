"""
Product history storage helpers.

One row per ProductKey; every scrape upserts the rows it saw so `last_seen` stays fresh.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from core import config
from core.db.base import from_json, get_conn, to_json, utc_now_iso
from core.models import ProductSpec
from core.product_keys import product_id, product_key

log = logging.getLogger("db")

_PRODUCT_COLUMNS = (
    "id, product_key, name, price, description, url, image, category, specs, "
    "first_seen_at, last_seen, updated_at"
)


def _row_to_product(row) -> Dict:
    product = dict(row)
    product["specs"] = from_json(product.get("specs"), default={})
    return product


def _specs_payload(specs) -> Dict | None:
    if specs is None:
        return None
    if isinstance(specs, ProductSpec):
        return specs.as_dict()
    return dict(specs)


def get_product_history() -> Dict[str, Dict]:
    """Return every stored product keyed by ProductKey."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products")
    rows = cur.fetchall()
    conn.close()

    history: Dict[str, Dict] = {}
    for row in rows:
        product = _row_to_product(row)
        key = product.get("product_key") or product_key(product.get("url") or "")
        history[key] = product

    log.info("Loaded product history", extra={"rows": len(rows), "keys": len(history)})
    return history


def save_product_history(products: Iterable[Dict], batch_size: Optional[int] = None) -> int:
    """
    Upsert products keyed by ProductId, committing in chunks of `batch_size` rows.

    Mutable fields are overwritten, `first_seen_at` is kept from the first insert.
    Returns the number of rows written.
    """
    size = int(batch_size or config.PRODUCT_BATCH_SIZE)
    if size < 1:
        raise ValueError("batch_size must be >= 1")

    items = [p for p in products if p.get("url")]
    if not items:
        return 0

    now = utc_now_iso()
    conn = get_conn()
    cur = conn.cursor()
    written = 0

    try:
        for start in range(0, len(items), size):
            chunk = items[start:start + size]
            params = []
            for product in chunk:
                key = product_key(product["url"])
                params.append(
                    (
                        product_id(key),
                        key,
                        product.get("name"),
                        product.get("price"),
                        product.get("description"),
                        product["url"],
                        product.get("image"),
                        product.get("category"),
                        to_json(_specs_payload(product.get("specs"))),
                        now,
                        now,
                        now,
                    )
                )
            cur.executemany(
                f"""
                INSERT INTO products ({_PRODUCT_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    product_key = EXCLUDED.product_key,
                    name = EXCLUDED.name,
                    price = EXCLUDED.price,
                    description = EXCLUDED.description,
                    url = EXCLUDED.url,
                    image = EXCLUDED.image,
                    category = EXCLUDED.category,
                    specs = EXCLUDED.specs,
                    last_seen = EXCLUDED.last_seen,
                    updated_at = EXCLUDED.updated_at
                """,
                params,
            )
            conn.commit()
            written += len(chunk)
            log.info(
                "Saved product batch",
                extra={"batch": start // size + 1, "rows": len(chunk)},
            )
    finally:
        conn.close()

    return written


def get_all_products(limit: Optional[int] = None) -> List[Dict]:
    """Return stored products, most recently seen first."""
    conn = get_conn()
    cur = conn.cursor()

    sql = f"""
        SELECT {_PRODUCT_COLUMNS}
        FROM products
        ORDER BY last_seen DESC, id
    """
    if limit is not None:
        sql += " LIMIT ?"
        cur.execute(sql, (int(limit),))
    else:
        cur.execute(sql)

    rows = cur.fetchall()
    conn.close()
    return [_row_to_product(r) for r in rows]


def count_products() -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) AS count FROM products")
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


__all__ = [
    "get_product_history",
    "save_product_history",
    "get_all_products",
    "count_products",
]
