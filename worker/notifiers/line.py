"""
LINE Messaging API provider (push + reply).
"""
from __future__ import annotations

import logging
from typing import Mapping

import httpx

from core import config
from worker.notifiers.base import NotificationProvider, register_provider

log = logging.getLogger("notify")

LINE_API_BASE = "https://api.line.me/v2/bot/message"
MAX_TEXT_LENGTH = 5000


def _text_message(text: str) -> dict:
    return {"type": "text", "text": text[:MAX_TEXT_LENGTH]}


@register_provider
class LineProvider(NotificationProvider):
    name = "line"
    enabled_by_default = True

    def __init__(self, channel_access_token: str | None = None, timeout: float = 10.0, client: httpx.Client | None = None):
        self.channel_access_token = (
            config.LINE_CHANNEL_ACCESS_TOKEN if channel_access_token is None else channel_access_token
        )
        self.timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.channel_access_token)

    def _post(self, path: str, payload: dict) -> None:
        headers = {"Authorization": f"Bearer {self.channel_access_token}"}
        url = f"{LINE_API_BASE}/{path}"
        if self._client is not None:
            resp = self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
        else:
            resp = httpx.post(url, json=payload, headers=headers, timeout=self.timeout)
        if resp.status_code != 200:
            raise RuntimeError(f"LINE API {path} returned {resp.status_code}: {resp.text[:200]}")

    def deliver(self, user: Mapping, message: str) -> None:
        user_id = user.get("id")
        if not user_id:
            raise ValueError("user has no LINE id")
        self._post("push", {"to": user_id, "messages": [_text_message(message)]})

    def reply_message(self, reply_token: str, text: str) -> bool:
        """Answer a webhook event; failures are logged and reported as False."""
        if not (self.is_configured() and reply_token):
            return False
        try:
            self._post("reply", {"replyToken": reply_token, "messages": [_text_message(text)]})
            return True
        except Exception as e:
            log.error("LINE reply failed", extra={"error": str(e)})
            return False


__all__ = ["LineProvider", "LINE_API_BASE"]
