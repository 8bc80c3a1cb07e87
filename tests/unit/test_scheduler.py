"""Unit tests for the daily job scheduler."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from fakes import FixedClock, utc
from reservation_engine.services.scheduler import (
    DailyJob,
    SchedulerService,
    next_run_at,
    seconds_until,
)


def test_next_run_later_today():
    assert next_run_at(utc(2025, 6, 1, 1, 30), 3, 0) == utc(2025, 6, 1, 3, 0)


def test_next_run_rolls_to_tomorrow():
    assert next_run_at(utc(2025, 6, 1, 3, 0), 3, 0) == utc(2025, 6, 2, 3, 0)
    assert next_run_at(utc(2025, 6, 1, 23, 59), 4, 0) == utc(2025, 6, 2, 4, 0)


def test_next_run_keeps_hotel_time_zone():
    tz = ZoneInfo("Europe/Helsinki")
    now = datetime(2025, 6, 1, 2, 0, tzinfo=tz)

    due = next_run_at(now, 3, 0)

    assert due == datetime(2025, 6, 1, 3, 0, tzinfo=tz)
    assert seconds_until(now, due) == 3600


def test_seconds_until_never_negative():
    assert seconds_until(utc(2025, 6, 1, 5, 0), utc(2025, 6, 1, 4, 0)) == 0.0


@pytest.mark.asyncio
async def test_run_job_returns_counts():
    job = DailyJob("occupancy_sweep", 3, 0, AsyncMock(return_value={"occupied": 2}))
    scheduler = SchedulerService([job], FixedClock(utc(2025, 6, 1, 0, 0)))

    assert await scheduler.run_job(job) == {"occupied": 2}


@pytest.mark.asyncio
async def test_run_job_swallows_failures():
    job = DailyJob("completion_sweep", 4, 0, AsyncMock(side_effect=RuntimeError("db down")))
    scheduler = SchedulerService([job], FixedClock(utc(2025, 6, 1, 0, 0)))

    assert await scheduler.run_job(job) is None


@pytest.mark.asyncio
async def test_start_runs_earliest_due_job_then_stops():
    clock = FixedClock(utc(2025, 6, 1, 3, 0) - timedelta(milliseconds=20))
    ran = []
    scheduler = None

    async def occupancy():
        ran.append("occupancy_sweep")
        await scheduler.stop()
        return {"occupied": 0, "cleared": 0, "failed": 0}

    completion = AsyncMock(return_value={"completed": 0, "failed": 0})
    scheduler = SchedulerService(
        [DailyJob("completion_sweep", 4, 0, completion), DailyJob("occupancy_sweep", 3, 0, occupancy)],
        clock,
    )

    await asyncio.wait_for(scheduler.start(), timeout=2)

    assert ran == ["occupancy_sweep"]
    completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_stop_wakes_sleeping_scheduler():
    job = DailyJob("completion_sweep", 4, 0, AsyncMock(return_value={}))
    scheduler = SchedulerService([job], FixedClock(utc(2025, 6, 1, 5, 0)))

    task = asyncio.create_task(scheduler.start())
    await asyncio.sleep(0.05)
    await scheduler.stop()
    await asyncio.wait_for(task, timeout=1)

    job.run.assert_not_awaited()
