"""
User CRUD and activation/deactivation helpers.

Users are keyed by their messaging-platform (LINE) user id and created on first contact.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from core.db.base import from_json, get_conn, to_json, utc_now_iso

log = logging.getLogger("db")

DEFAULT_NOTIFICATION_SETTINGS = {"line": True, "email": False}

_USER_COLUMNS = (
    "id, is_active, email, settings, summary_settings, last_summary_date, created_at, updated_at"
)


def _row_to_user(row) -> Dict:
    user = dict(row)
    user["is_active"] = bool(user.get("is_active"))
    settings = from_json(user.get("settings"), default={}) or {}
    settings.setdefault("notifications", dict(DEFAULT_NOTIFICATION_SETTINGS))
    user["settings"] = settings
    user["summary_settings"] = from_json(user.get("summary_settings"))
    return user


def get_user(user_id: str) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_user(row) if row else None


def create_user(user_id: str, email: str | None = None) -> Dict:
    """Insert a new active user with default notification settings (no-op if it already exists)."""
    now = utc_now_iso()
    settings = {"notifications": dict(DEFAULT_NOTIFICATION_SETTINGS)}

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO users (id, is_active, email, settings, created_at, updated_at)
        VALUES (?, 1, ?, ?, ?, ?)
        ON CONFLICT (id) DO NOTHING
        """,
        (user_id, email, to_json(settings), now, now),
    )
    conn.commit()
    conn.close()
    log.info("User registered", extra={"user_id": user_id})

    return get_user(user_id) or {
        "id": user_id,
        "is_active": True,
        "email": email,
        "settings": settings,
        "created_at": now,
    }


def get_or_create_user(user_id: str) -> Dict:
    user = get_user(user_id)
    if user:
        return user
    return create_user(user_id)


def get_active_users() -> List[Dict]:
    """Return all users allowed to receive notifications."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE is_active = 1
        ORDER BY created_at, id
        """
    )
    rows = cur.fetchall()
    conn.close()
    return [_row_to_user(r) for r in rows]


def count_users() -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) AS count FROM users")
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


def set_user_active(user_id: str, active: bool) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
        (1 if active else 0, utc_now_iso(), user_id),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


def update_user_notification_settings(user_id: str, notification_settings: Dict[str, bool]) -> bool:
    """Replace `settings.notifications` for a user, keeping any other settings keys."""
    user = get_user(user_id)
    if not user:
        return False

    settings = dict(user.get("settings") or {})
    settings["notifications"] = {k: bool(v) for k, v in notification_settings.items()}

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE users SET settings = ?, updated_at = ? WHERE id = ?",
        (to_json(settings), utc_now_iso(), user_id),
    )
    conn.commit()
    conn.close()
    return True


def update_user_email(user_id: str, email: str) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE users SET email = ?, updated_at = ? WHERE id = ?",
        ((email or "").strip().lower() or None, utc_now_iso(), user_id),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


__all__ = [
    "DEFAULT_NOTIFICATION_SETTINGS",
    "get_user",
    "create_user",
    "get_or_create_user",
    "get_active_users",
    "count_users",
    "set_user_active",
    "update_user_notification_settings",
    "update_user_email",
]
