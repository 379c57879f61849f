"""
Single import point for the store (re-exports from core.db.*).
"""
from core.db.base import DatabaseUnavailable, get_conn
from core.db.notifications import count_notifications_since, get_user_notifications, save_notification
from core.db.products import count_products, get_all_products, get_product_history, save_product_history
from core.db.rules import (
    add_tracking_rule,
    count_active_rules,
    delete_tracking_rule,
    get_all_user_rules,
    get_tracking_rule,
    get_user_tracking_rules,
    update_tracking_rule,
)
from core.db.schema import init_db
from core.db.system import get_system_state, get_system_stats, save_system_state
from core.db.users import (
    count_users,
    create_user,
    get_active_users,
    get_or_create_user,
    get_user,
    set_user_active,
    update_user_email,
    update_user_notification_settings,
)

__all__ = [
    "DatabaseUnavailable",
    "get_conn",
    "init_db",
    # products
    "get_product_history",
    "save_product_history",
    "get_all_products",
    "count_products",
    # users
    "get_user",
    "create_user",
    "get_or_create_user",
    "get_active_users",
    "count_users",
    "set_user_active",
    "update_user_notification_settings",
    "update_user_email",
    # rules
    "get_user_tracking_rules",
    "get_all_user_rules",
    "get_tracking_rule",
    "add_tracking_rule",
    "update_tracking_rule",
    "delete_tracking_rule",
    "count_active_rules",
    # notifications
    "save_notification",
    "count_notifications_since",
    "get_user_notifications",
    # system
    "get_system_state",
    "save_system_state",
    "get_system_stats",
]
