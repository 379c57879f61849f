"""
Notification provider contract, provider registry and the fan-out manager.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Type

log = logging.getLogger("notify")


def _user_channels(user: Mapping) -> Mapping:
    return ((user.get("settings") or {}).get("notifications")) or {}


class NotificationProvider(ABC):
    """A delivery channel. Subclasses set `name` and implement `deliver`."""

    name: str = ""
    enabled_by_default: bool = False

    @abstractmethod
    def is_configured(self) -> bool:
        """True when the channel has the credentials it needs."""

    @abstractmethod
    def deliver(self, user: Mapping, message: str) -> None:
        """Send `message` to `user`; raise on failure."""

    def is_enabled_for(self, user: Mapping) -> bool:
        return bool(_user_channels(user).get(self.name, self.enabled_by_default))

    def send(self, user: Mapping, message: str) -> Dict:
        """Deliver and report `{provider, user_id, success, error}`; never raises."""
        result = {"provider": self.name, "user_id": user.get("id"), "success": False, "error": None}
        try:
            self.deliver(user, message)
            result["success"] = True
        except Exception as e:
            result["error"] = str(e)
            log.error(
                "Notification failed",
                extra={"provider": self.name, "user_id": user.get("id"), "error": str(e)},
            )
        return result


_REGISTRY: Dict[str, Type[NotificationProvider]] = {}


def register_provider(cls: Type[NotificationProvider]) -> Type[NotificationProvider]:
    """Class decorator adding a provider under its `name`."""
    if not cls.name:
        raise ValueError("provider classes must define a name")
    _REGISTRY[cls.name] = cls
    return cls


def get_provider(name: str) -> Optional[Type[NotificationProvider]]:
    return _REGISTRY.get(name)


def provider_names() -> List[str]:
    return list(_REGISTRY)


class NotificationManager:
    """Sends a message through every configured provider the user has switched on."""

    def __init__(self, providers: Iterable[NotificationProvider] = ()):
        self._providers: Dict[str, NotificationProvider] = {}
        for provider in providers:
            self.add_provider(provider)

    def add_provider(self, provider: NotificationProvider) -> None:
        self._providers[provider.name] = provider

    def get_provider(self, name: str) -> Optional[NotificationProvider]:
        return self._providers.get(name)

    def active_provider_names(self) -> List[str]:
        return [name for name, p in self._providers.items() if p.is_configured()]

    def send_notification(self, user: Mapping, message: str) -> List[Dict]:
        results: List[Dict] = []
        for provider in self._providers.values():
            if not provider.is_configured() or not provider.is_enabled_for(user):
                continue
            try:
                results.append(provider.send(user, message))
            except Exception as e:
                results.append(
                    {"provider": provider.name, "user_id": user.get("id"), "success": False, "error": str(e)}
                )
        return results


__all__ = [
    "NotificationProvider",
    "NotificationManager",
    "register_provider",
    "get_provider",
    "provider_names",
]
