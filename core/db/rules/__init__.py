"""
Tracking rule storage re-exports.
"""
from core.db.rules.rules_store import (
    add_tracking_rule,
    count_active_rules,
    delete_tracking_rule,
    get_all_user_rules,
    get_tracking_rule,
    get_user_tracking_rules,
    update_tracking_rule,
)

__all__ = [
    "add_tracking_rule",
    "count_active_rules",
    "delete_tracking_rule",
    "get_all_user_rules",
    "get_tracking_rule",
    "get_user_tracking_rules",
    "update_tracking_rule",
]
