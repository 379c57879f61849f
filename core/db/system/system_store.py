"""
Singleton tracking state and aggregate stats.
"""
from __future__ import annotations

import logging
from typing import Dict

from core.db.base import DatabaseUnavailable, get_conn, utc_now_iso
from core.db.notifications import count_notifications_since
from core.db.rules import count_active_rules
from core.db.schema import SYSTEM_STATE_ID
from core.db.users import count_users

log = logging.getLogger("db")


def get_system_state() -> Dict:
    """Return `{is_tracking, last_updated}`; a missing row means tracking was never started."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT is_tracking, last_updated FROM system_state WHERE id = ?", (SYSTEM_STATE_ID,))
    row = cur.fetchone()
    conn.close()
    if not row:
        return {"is_tracking": False, "last_updated": None}
    return {"is_tracking": bool(row["is_tracking"]), "last_updated": row["last_updated"]}


def save_system_state(is_tracking: bool) -> None:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO system_state (id, is_tracking, last_updated)
        VALUES (?, ?, ?)
        ON CONFLICT (id) DO UPDATE SET
            is_tracking = EXCLUDED.is_tracking,
            last_updated = EXCLUDED.last_updated
        """,
        (SYSTEM_STATE_ID, 1 if is_tracking else 0, utc_now_iso()),
    )
    conn.commit()
    conn.close()


def get_system_stats() -> Dict[str, int]:
    """
    Totals for the status views: registered users, enabled rules, notifications in the last 24h.
    Returns zeros when the store is unreachable.
    """
    try:
        return {
            "total_users": count_users(),
            "active_rules": count_active_rules(),
            "notifications_last_24h": count_notifications_since(),
        }
    except DatabaseUnavailable as e:
        log.error("Failed to load system stats", extra={"error": str(e)})
        return {"total_users": 0, "active_rules": 0, "notifications_last_24h": 0}


__all__ = ["get_system_state", "save_system_state", "get_system_stats"]
