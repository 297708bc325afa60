"""APScheduler-based poll scheduler.

Runs ``Poller.run_cycle`` on a fixed interval in the application's event
loop.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stockwatch.services.poller import Poller

logger = structlog.get_logger(__name__)

POLL_JOB_ID = "poll_tracked_products"


class PollScheduler:
    """Manages the periodic poll job.

    This scheduler:
    - Starts and stops the background poll job
    - Never runs two cycles at once (a late cycle is skipped, not stacked)
    - Handles errors gracefully without stopping the scheduler
    """

    def __init__(self, poller: Poller, interval_seconds: int):
        self.poller = poller
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        # AsyncIOScheduler.shutdown only takes effect on the next loop iteration
        self._stop_requested = False
        self.logger = logger.bind(service="poll_scheduler")

    def start(self, first_run_delay_seconds: int = 0) -> Optional[Job]:
        """Start the scheduler and register the poll job."""
        if self.scheduler.running:
            self.logger.warning("scheduler_already_running")
            return None

        self._stop_requested = False
        self.scheduler.start()

        trigger = IntervalTrigger(
            seconds=self.interval_seconds,
            start_date=datetime.now(timezone.utc),
            timezone="UTC",
        )
        job = self.scheduler.add_job(
            func=self._run_cycle_wrapper,
            trigger=trigger,
            id=POLL_JOB_ID,
            name="Poll tracked products",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping cycles
            coalesce=True,
        )
        if first_run_delay_seconds > 0:
            job.modify(
                next_run_time=datetime.now(timezone.utc)
                + timedelta(seconds=first_run_delay_seconds)
            )

        self.logger.info(
            "scheduler_started",
            interval_seconds=self.interval_seconds,
            next_run=job.next_run_time.isoformat() if job.next_run_time else None,
        )
        return job

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running cycle."""
        if self.is_running():
            self.scheduler.shutdown(wait=False)
            self._stop_requested = True
            self.logger.info("scheduler_stopped")
        else:
            self.logger.warning("scheduler_not_running")

    async def _run_cycle_wrapper(self) -> None:
        """Entry point APScheduler calls; a failed cycle must not kill the job."""
        try:
            await self.poller.run_cycle()
        except Exception as e:
            self.logger.error("poll_cycle_failed", error=str(e), exc_info=True)

    def get_job_status(self) -> dict:
        job = self.scheduler.get_job(POLL_JOB_ID)
        if not job:
            return {}
        return {
            "job_id": job.id,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        }

    def is_running(self) -> bool:
        return self.scheduler.running and not self._stop_requested
