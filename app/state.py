"""
Process-wide singletons hung off `app.state` (created on first use).
"""
from __future__ import annotations

from fastapi import FastAPI

from worker.notifiers import NotificationManager
from worker.scheduler import TrackingScheduler
from worker.tracker import get_manager


def get_scheduler(app: FastAPI) -> TrackingScheduler:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is None:
        scheduler = TrackingScheduler()
        app.state.scheduler = scheduler
    return scheduler


def get_notifier(app: FastAPI) -> NotificationManager:
    """The manager shared with the tracker, so webhook replies and pushes use one LINE client."""
    notifier = getattr(app.state, "notifier", None)
    if notifier is None:
        notifier = get_manager()
        app.state.notifier = notifier
    return notifier


__all__ = ["get_scheduler", "get_notifier"]
