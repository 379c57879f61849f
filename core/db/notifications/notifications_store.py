"""
Notification history store.

One row per message delivered to a user by at least one provider.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List

from core.db.base import from_json, get_conn, to_json, utc_now_iso


def save_notification(user_id: str, message: str, product_ids: Iterable[str] = (), status: str = "sent") -> int:
    """Record a delivered message and return its id."""
    ids = [str(p) for p in product_ids if p]

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO notifications (user_id, message, product_ids, sent_at, status)
        VALUES (?, ?, ?, ?, ?)
        RETURNING id
        """,
        (user_id, message, to_json(ids), utc_now_iso(), status),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return int(row["id"])


def count_notifications_since(since_iso: str | None = None) -> int:
    """Count notifications sent at or after `since_iso` (defaults to 24 hours ago)."""
    if not since_iso:
        since_iso = (datetime.now(timezone.utc) - timedelta(hours=24)).isoformat(timespec="seconds")

    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) AS count FROM notifications WHERE sent_at >= ?", (since_iso,))
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


def get_user_notifications(user_id: str, limit: int = 20) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, user_id, message, product_ids, sent_at, status
        FROM notifications
        WHERE user_id = ?
        ORDER BY sent_at DESC, id DESC
        LIMIT ?
        """,
        (user_id, int(limit)),
    )
    rows = cur.fetchall()
    conn.close()

    out: List[Dict] = []
    for r in rows:
        item = dict(r)
        item["product_ids"] = from_json(item.get("product_ids"), default=[])
        out.append(item)
    return out


__all__ = ["save_notification", "count_notifications_since", "get_user_notifications"]
