"""
Notification channels. Importing this package registers the built-in providers.
"""
from worker.notifiers.base import (
    NotificationManager,
    NotificationProvider,
    get_provider,
    provider_names,
    register_provider,
)
from worker.notifiers.email import EmailProvider
from worker.notifiers.line import LineProvider


def build_default_manager() -> NotificationManager:
    """Manager with one instance of every registered provider that has credentials."""
    manager = NotificationManager()
    for name in provider_names():
        provider = get_provider(name)()
        if provider.is_configured():
            manager.add_provider(provider)
    return manager


__all__ = [
    "EmailProvider",
    "LineProvider",
    "NotificationManager",
    "NotificationProvider",
    "build_default_manager",
    "get_provider",
    "provider_names",
    "register_provider",
]
