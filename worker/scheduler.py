"""
Tracking scheduler: a two-state machine (STOPPED / RUNNING) driving periodic passes.

The running state is persisted on every transition so a restarted process can resume.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from core import config
from core.database import get_system_state, save_system_state
from core.db.base import utc_now_iso
from worker.tracker import run_tracking_pass

log = logging.getLogger("scheduler")

STOPPED = "STOPPED"
RUNNING = "RUNNING"


class TrackingScheduler:
    def __init__(
        self,
        run_pass: Callable[[], Awaitable[Dict]] | None = None,
        load_state: Callable[[], Dict] | None = None,
        save_state: Callable[[bool], Any] | None = None,
        interval_seconds: float | None = None,
    ):
        self._run_pass = run_pass or run_tracking_pass
        self._load_state = load_state or get_system_state
        self._save_state = save_state or save_system_state
        self.interval_seconds = float(
            config.TRACKING_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )

        self.state = STOPPED
        self.last_run_at: Optional[str] = None
        self.last_result: Optional[Dict] = None
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self._pass_in_progress = False

    @property
    def is_tracking(self) -> bool:
        return self.state == RUNNING

    async def _persist(self, is_tracking: bool) -> None:
        try:
            await asyncio.to_thread(self._save_state, is_tracking)
        except Exception as e:
            log.error("Failed to persist tracking state", extra={"is_tracking": is_tracking, "error": str(e)})

    async def _run_once(self, generation: int) -> None:
        async with self._lock:
            # stopped or restarted while waiting for the previous pass
            if self._generation != generation:
                return
            self._pass_in_progress = True
            try:
                self.last_result = await self._run_pass()
            except Exception as e:
                log.exception("Tracking pass failed", extra={"error": str(e)})
            finally:
                self._pass_in_progress = False
                self.last_run_at = utc_now_iso()

    async def _loop(self, generation: int) -> None:
        while self._generation == generation:
            await self._run_once(generation)
            if self._generation != generation:
                break
            log.info("Sleeping", extra={"seconds": self.interval_seconds})
            await asyncio.sleep(self.interval_seconds)

    async def start(self) -> bool:
        """Begin tracking: one pass now, then one per interval. False if already running."""
        if self.state == RUNNING:
            return False
        self.state = RUNNING
        self._generation += 1
        generation = self._generation
        await self._persist(True)
        if self._generation == generation:
            self._task = asyncio.create_task(self._loop(generation))
        log.info("Tracking started", extra={"interval_seconds": self.interval_seconds})
        return True

    async def stop(self) -> bool:
        """
        Stop tracking. False if already stopped.

        A pass that is already running finishes; no further pass is scheduled.
        """
        if self.state == STOPPED:
            return False
        self.state = STOPPED
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done() and not self._pass_in_progress:
            task.cancel()
        await self._persist(False)
        log.info("Tracking stopped")
        return True

    async def restore(self) -> bool:
        """Resume tracking if the persisted state says it was on."""
        try:
            state = await asyncio.to_thread(self._load_state)
        except Exception as e:
            log.error("Failed to load tracking state", extra={"error": str(e)})
            return False
        if (state or {}).get("is_tracking"):
            log.info("Restoring tracking from persisted state")
            return await self.start()
        return False

    async def shutdown(self) -> None:
        """Cancel the loop without touching the persisted state."""
        self.state = STOPPED
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def status(self) -> Dict:
        return {
            "is_tracking": self.is_tracking,
            "state": self.state,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self.last_run_at,
            "last_result": self.last_result,
            "pass_in_progress": self._pass_in_progress,
        }


__all__ = ["TrackingScheduler", "STOPPED", "RUNNING"]
