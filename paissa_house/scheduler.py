"""Recurring cleanup of stored pagination sessions."""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Settings
from .lifecycle import SessionLifecycleManager

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Runs the retention sweep once a day."""

    def __init__(
        self,
        lifecycle: SessionLifecycleManager,
        settings: Settings,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self._lifecycle = lifecycle
        self._settings = settings
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self._scheduler.add_job(
            self.run_once,
            CronTrigger(
                hour=self._settings.sweep_hour,
                minute=self._settings.sweep_minute,
                timezone="UTC",
            ),
            id="pagination-sweep",
            replace_existing=True,
        )
        self._scheduler.start()
        self._started = True
        logger.info(
            "Pagination cleanup scheduled daily at %02d:%02d UTC",
            self._settings.sweep_hour,
            self._settings.sweep_minute,
        )

    def run_once(self) -> int:
        logger.info("Running scheduled pagination state cleanup")
        return self._lifecycle.sweep()

    def shutdown(self) -> None:
        if not self._started:
            return
        self._scheduler.shutdown(wait=False)
        self._started = False


__all__ = ["CleanupScheduler"]
