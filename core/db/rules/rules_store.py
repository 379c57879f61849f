"""
Tracking rule storage helpers (data-level only).

Rules belong to exactly one user; `filters` is stored as the JSON of `FilterSpec.as_dict()`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from core.db.base import from_json, get_conn, to_json, utc_now_iso
from core.models import FilterSpec

_RULE_COLUMNS = "id, user_id, name, description, enabled, filters, created_at, updated_at"


def _row_to_rule(row) -> Dict:
    rule = dict(row)
    rule["enabled"] = bool(rule.get("enabled"))
    rule["filters"] = from_json(rule.get("filters"), default={}) or {}
    return rule


def _filters_json(filters: Any) -> str:
    if isinstance(filters, FilterSpec):
        spec = filters
    else:
        spec = FilterSpec.from_dict(filters)
    return to_json(spec.as_dict()) or "{}"


def get_user_tracking_rules(user_id: str) -> List[Dict]:
    """Return the user's enabled rules in creation order."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_RULE_COLUMNS}
        FROM tracking_rules
        WHERE user_id = ? AND enabled = 1
        ORDER BY created_at, id
        """,
        (user_id,),
    )
    rows = cur.fetchall()
    conn.close()
    return [_row_to_rule(r) for r in rows]


def get_all_user_rules(user_id: str) -> List[Dict]:
    """Return every rule of the user, disabled ones included."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_RULE_COLUMNS}
        FROM tracking_rules
        WHERE user_id = ?
        ORDER BY created_at, id
        """,
        (user_id,),
    )
    rows = cur.fetchall()
    conn.close()
    return [_row_to_rule(r) for r in rows]


def get_tracking_rule(user_id: str, rule_id: int) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_RULE_COLUMNS} FROM tracking_rules WHERE id = ? AND user_id = ?",
        (int(rule_id), user_id),
    )
    row = cur.fetchone()
    conn.close()
    return _row_to_rule(row) if row else None


def add_tracking_rule(user_id: str, rule: Mapping[str, Any]) -> int:
    """
    Insert a rule for a user and return its id.

    `rule` carries name, optional description, enabled (default True) and filters.
    Raises ValueError when the filters are malformed.
    """
    name = (rule.get("name") or "").strip()
    if not name:
        raise ValueError("rule name is required")
    filters = _filters_json(rule.get("filters"))
    now = utc_now_iso()

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO tracking_rules (user_id, name, description, enabled, filters, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        (
            user_id,
            name,
            rule.get("description"),
            1 if rule.get("enabled", True) else 0,
            filters,
            now,
            now,
        ),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return int(row["id"])


def update_tracking_rule(user_id: str, rule_id: int, updates: Mapping[str, Any]) -> bool:
    """
    Apply a partial update (name, description, enabled, filters) to a user's rule.
    Returns True if a row was updated.
    """
    assignments: List[str] = []
    params: List[Any] = []

    if "name" in updates:
        name = (updates.get("name") or "").strip()
        if not name:
            raise ValueError("rule name cannot be empty")
        assignments.append("name = ?")
        params.append(name)
    if "description" in updates:
        assignments.append("description = ?")
        params.append(updates.get("description"))
    if "enabled" in updates:
        assignments.append("enabled = ?")
        params.append(1 if updates.get("enabled") else 0)
    if "filters" in updates:
        assignments.append("filters = ?")
        params.append(_filters_json(updates.get("filters")))

    if not assignments:
        return get_tracking_rule(user_id, rule_id) is not None

    assignments.append("updated_at = ?")
    params.append(utc_now_iso())
    params.extend([int(rule_id), user_id])

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"UPDATE tracking_rules SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
        tuple(params),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


def delete_tracking_rule(user_id: str, rule_id: int) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "DELETE FROM tracking_rules WHERE id = ? AND user_id = ?",
        (int(rule_id), user_id),
    )
    deleted = cur.rowcount
    conn.commit()
    conn.close()
    return deleted > 0


def count_active_rules() -> int:
    """Enabled rules across all users."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) AS count FROM tracking_rules WHERE enabled = 1")
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


__all__ = [
    "get_user_tracking_rules",
    "get_all_user_rules",
    "get_tracking_rule",
    "add_tracking_rule",
    "update_tracking_rule",
    "delete_tracking_rule",
    "count_active_rules",
]
