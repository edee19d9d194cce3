"""
Scheduler — periodic trust store refresh.

Infrastructure layer — uses APScheduler (3.x) AsyncIOScheduler so refresh
jobs run on the same event loop as the single-flight coordinator and the
ASGI app, driven by a standard 5-field cron expression.

Each job run is timed and its outcome logged. update() never raises, so a
job can only report how many certificates the store now holds.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from rp_trust_store.domain.models import CertificateRecord

log = structlog.get_logger()

JOB_ID = "rp_trust_store_refresh"
STARTUP_JOB_ID = "rp_trust_store_startup"


def create_scheduler(
    update_fn: Callable[[], Awaitable[list[CertificateRecord]]],
    cron: str = "0 */6 * * *",
    run_on_startup: bool = True,
) -> AsyncIOScheduler:
    """
    Create an AsyncIOScheduler that refreshes the trust store on a cron schedule.

    Args:
        update_fn: Zero-argument coroutine function returning the certificate list.
        cron: Standard 5-field cron expression (minute hour dom month dow).
        run_on_startup: If True, also queue a one-off run for when the scheduler starts.

    Returns:
        A configured scheduler; call .start() from inside a running event loop.
    """
    scheduler = AsyncIOScheduler()

    async def _job() -> None:
        start = time.monotonic()
        certificates = await update_fn()
        log.info(
            "scheduler.job_completed",
            certificates=len(certificates),
            elapsed_seconds=round(time.monotonic() - start, 3),
        )

    minute, hour, dom, month, dow = cron.split()
    scheduler.add_job(
        _job,
        trigger=CronTrigger(
            minute=minute,
            hour=hour,
            day=dom,
            month=month,
            day_of_week=dow,
        ),
        id=JOB_ID,
        name="RP trust store refresh",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    if run_on_startup:
        log.info("scheduler.startup_run", message="Refreshing trust store when the scheduler starts")
        scheduler.add_job(
            _job,
            id=STARTUP_JOB_ID,
            name="RP trust store initial refresh",
            misfire_grace_time=None,
        )

    return scheduler
