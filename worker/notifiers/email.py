"""
SMTP e-mail provider.
"""
from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Mapping

from core import config
from worker.notifiers.base import NotificationProvider, register_provider

log = logging.getLogger("notify")

SUBJECT = "Apple 翻新機新品通知"


def _effective_from(email_from: str | None, email_user: str | None, smtp_server: str) -> str:
    # Gmail rewrites or rejects a From that differs from the login.
    if "gmail" in (smtp_server or "").lower() and email_user:
        return email_user
    return email_from or email_user or "noreply@apple-tracker.local"


@register_provider
class EmailProvider(NotificationProvider):
    name = "email"

    def __init__(
        self,
        email_user: str | None = None,
        email_password: str | None = None,
        email_from: str | None = None,
        smtp_server: str | None = None,
        smtp_port: int | None = None,
    ):
        self.email_user = email_user or config.EMAIL_USER
        self.email_password = email_password or config.EMAIL_PASSWORD
        self.smtp_server = smtp_server or config.SMTP_SERVER
        self.smtp_port = int(smtp_port or config.SMTP_PORT)
        self.email_from = _effective_from(email_from or config.EMAIL_FROM, self.email_user, self.smtp_server)

    def is_configured(self) -> bool:
        return bool(self.email_user and self.email_password)

    def is_enabled_for(self, user: Mapping) -> bool:
        return bool(user.get("email")) and super().is_enabled_for(user)

    def deliver(self, user: Mapping, message: str) -> None:
        to_email = user.get("email")
        if not to_email:
            raise ValueError("user has no e-mail address")

        msg = MIMEText(message, _charset="utf-8")
        msg["Subject"] = SUBJECT
        msg["From"] = self.email_from
        msg["To"] = to_email

        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            server.starttls()
            server.login(self.email_user, self.email_password)
            server.sendmail(self.email_from, [to_email], msg.as_string())
        log.info("Email sent", extra={"to": to_email, "from": self.email_from})


__all__ = ["EmailProvider"]
