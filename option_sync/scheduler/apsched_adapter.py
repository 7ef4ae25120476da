"""APScheduler wrapper running syncs periodically."""

from __future__ import annotations

from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType
from ..logging_conf import get_logger

SYNC_JOB_ID = "option-sync"


class APSchedulerAdapter:
    """Manage the periodic sync job.

    The job runs with ``max_instances=1`` and ``coalesce=True`` so in-process
    runs never overlap; missed fire times collapse into one run.
    """

    def __init__(self, blocking: bool = False) -> None:
        self.scheduler = BlockingScheduler() if blocking else BackgroundScheduler()
        self.logger = get_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.started = True
            self.logger.info("apscheduler_started")
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_sync(self, schedule: ScheduleConfig, callback: Callable[[], object]) -> None:
        trigger = self._build_trigger(schedule)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=SYNC_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", schedule=schedule.model_dump(mode="json"))

    def remove_sync(self) -> None:
        try:
            self.scheduler.remove_job(SYNC_JOB_ID)
        except JobLookupError:
            self.logger.warning("job_remove_failed", job_id=SYNC_JOB_ID)

    @staticmethod
    def _build_trigger(schedule: ScheduleConfig):
        if schedule.type is ScheduleType.CRON:
            return CronTrigger.from_crontab(str(schedule.value))
        if schedule.type is ScheduleType.INTERVAL:
            if isinstance(schedule.value, (int, float)):
                return IntervalTrigger(seconds=float(schedule.value))
            if isinstance(schedule.value, dict):
                return IntervalTrigger(**schedule.value)
            raise ValueError("Interval schedule requires seconds or kwargs dict")
        raise ValueError(f"Unknown schedule type: {schedule.type}")

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "SYNC_JOB_ID"]
