"""APScheduler wrapper running periodic maintenance jobs on the event loop."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import get_logger


class MaintenanceScheduler:
    """Manage interval jobs such as the browser pool idle sweep."""

    def __init__(self) -> None:
        self.scheduler: AsyncIOScheduler | None = None
        self.logger = get_logger("scheduler")
        self.started = False

    def start(self) -> None:
        """Start the scheduler on the running event loop."""

        if self.started:
            return
        self.scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        self.scheduler.start()
        self.started = True
        self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started and self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.scheduler = None
            self.logger.info("apscheduler_stopped")

    def schedule_interval(
        self,
        job_id: str,
        callback: Callable[[], Awaitable[Any]] | Callable[[], Any],
        seconds: float,
    ) -> None:
        if not self.started or self.scheduler is None:
            raise RuntimeError("Scheduler must be started before adding jobs")
        self.scheduler.add_job(
            callback,
            trigger=self._build_trigger(seconds),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", job_id=job_id, interval=seconds)

    def remove(self, job_id: str) -> None:
        if not self.started or self.scheduler is None:
            return
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            self.logger.warning("job_remove_failed", job_id=job_id)

    @staticmethod
    def _build_trigger(seconds: float) -> IntervalTrigger:
        if seconds <= 0:
            raise ValueError("Interval must be positive")
        return IntervalTrigger(seconds=float(seconds))

    def list_jobs(self) -> list[dict]:
        if self.scheduler is None:
            return []
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": job.next_run_time,
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["MaintenanceScheduler"]
