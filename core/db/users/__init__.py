"""
User storage helpers.
"""
from core.db.users.user_store import (
    DEFAULT_NOTIFICATION_SETTINGS,
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
    "DEFAULT_NOTIFICATION_SETTINGS",
    "count_users",
    "create_user",
    "get_active_users",
    "get_or_create_user",
    "get_user",
    "set_user_active",
    "update_user_email",
    "update_user_notification_settings",
]
