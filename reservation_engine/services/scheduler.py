"""Scheduler for the daily reconciliation jobs (occupancy and completion sweeps)."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Optional

from reservation_engine.logging import get_logger
from reservation_engine.services.clock import Clock

logger = get_logger(__name__)


@dataclass
class DailyJob:
    """A job that runs once a day at ``hour:minute`` hotel time."""

    name: str
    hour: int
    minute: int
    run: Callable[[], Awaitable[dict[str, int]]]


def next_run_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next ``hour:minute`` strictly after ``now``, in ``now``'s time zone."""
    target = datetime.combine(now.date(), time(hour, minute), tzinfo=now.tzinfo)
    if target <= now:
        target = datetime.combine(
            now.date() + timedelta(days=1), time(hour, minute), tzinfo=now.tzinfo
        )
    return target


def seconds_until(now: datetime, target: datetime) -> float:
    """Elapsed seconds between two aware datetimes, measured in UTC."""
    return max(
        (target.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds(),
        0.0,
    )


class SchedulerService:
    """Background task scheduler for the daily sweeps.

    Jobs run one at a time on a single loop; a run always finishes
    before the next one is scheduled.
    """

    def __init__(self, jobs: list[DailyJob], clock: Clock):
        """Initialize scheduler service."""
        self.jobs = jobs
        self.clock = clock
        self._running = False
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        """Start scheduler loop."""
        if not self.jobs:
            logger.warning("scheduler_no_jobs")
            return

        self._running = True
        self._stop_event.clear()
        logger.info(
            "scheduler_started",
            jobs={job.name: f"{job.hour:02d}:{job.minute:02d}" for job in self.jobs},
        )

        while self._running:
            now = self.clock.now()
            job, due_at = self._next_due(now)
            delay = seconds_until(now, due_at)
            logger.info("scheduler_waiting", job=job.name, due_at=due_at.isoformat())

            if await self._sleep(delay):
                break

            await self.run_job(job)

    async def stop(self) -> None:
        """Stop scheduler loop."""
        self._running = False
        self._stop_event.set()
        logger.info("scheduler_stopped")

    async def run_job(self, job: DailyJob) -> Optional[dict[str, int]]:
        """Run one job, logging instead of raising on failure."""
        logger.info("scheduled_job_started", job=job.name)
        try:
            result = await job.run()
        except Exception as e:
            logger.error("scheduled_job_failed", job=job.name, error=str(e), exc_info=True)
            return None

        logger.info("scheduled_job_finished", job=job.name, **result)
        return result

    def _next_due(self, now: datetime) -> tuple[DailyJob, datetime]:
        candidates = [(job, next_run_at(now, job.hour, job.minute)) for job in self.jobs]
        return min(candidates, key=lambda pair: pair[1])

    async def _sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``. True if woken by ``stop()``."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False
