"""
Notification history re-exports.
"""
from core.db.notifications.notifications_store import (
    count_notifications_since,
    get_user_notifications,
    save_notification,
)

__all__ = ["count_notifications_since", "get_user_notifications", "save_notification"]
