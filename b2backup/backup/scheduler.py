# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
b2backup Scheduler - Periodic backup runs.

Uses APScheduler's AsyncIOScheduler with a single interval job that fires
immediately on start and then every config.interval_hours.
"""

import asyncio
from datetime import datetime

import httpx
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from b2backup.backup.manager import run_backup_cycle
from b2backup.config import BackupConfig

logger = structlog.get_logger()

JOB_ID = "b2backup_scheduled"


async def scheduled_backup(config: BackupConfig, http: httpx.AsyncClient) -> None:
    """Run one backup cycle; a failure is logged and the schedule continues."""
    logger.info("scheduled_backup_starting")
    try:
        result = await run_backup_cycle(config, http)
        logger.info(
            "scheduled_backup_completed",
            operation_id=result.operation_id,
            object_name=result.object_name,
        )
    except Exception as e:
        logger.error("scheduled_backup_failed", error=str(e))


def create_backup_scheduler(config: BackupConfig, http: httpx.AsyncClient) -> AsyncIOScheduler:
    """
    Build (but do not start) the backup scheduler.

    Overlapping runs are not allowed; missed runs are coalesced into one.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_backup,
        IntervalTrigger(hours=config.interval_hours),
        args=[config, http],
        id=JOB_ID,
        next_run_time=datetime.now(),
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


async def run_backup_loop(config: BackupConfig) -> None:
    """
    Run backups forever, until the task is cancelled.
    """
    async with httpx.AsyncClient(timeout=config.transfer.request_timeout_seconds) as http:
        scheduler = create_backup_scheduler(config, http)
        scheduler.start()

        logger.info(
            "scheduler_started",
            interval_hours=config.interval_hours,
            next_run=scheduler.get_job(JOB_ID).next_run_time.isoformat(),
        )

        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")
