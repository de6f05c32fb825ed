"""
Background Job Scheduler.

WHAT: Configures and manages APScheduler for the periodic push sweep.

HOW: Uses APScheduler with AsyncIOScheduler so the sweep runs on the
application's event loop. A memory job store is enough: the only job is
re-registered on every startup.

Example:
    # In the application lifespan:
    await start_scheduler(sweep_service, settings.PUSH_SWEEP_INTERVAL_SECONDS)
    ...
    await shutdown_scheduler()
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.triggers.interval import IntervalTrigger

from pushrelay.services.push_sweep import PushSweepService

logger = logging.getLogger(__name__)

PUSH_SWEEP_JOB_ID = "push_sweep"


# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the global scheduler instance."""
    return _scheduler


async def start_scheduler(sweep_service: PushSweepService, interval_seconds: int) -> None:
    """
    Start the background job scheduler.

    HOW:
    1. Creates AsyncIOScheduler with memory job store
    2. Registers the push sweep job
    3. Starts the scheduler

    Args:
        sweep_service: Service whose run_sweep is scheduled
        interval_seconds: Seconds between ticks
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running")
        return

    jobstores = {
        "default": MemoryJobStore()
    }

    executors = {
        "default": AsyncIOExecutor()
    }

    job_defaults = {
        "coalesce": True,  # Combine multiple missed runs into one
        "max_instances": 1,  # Only one instance of each job at a time
        "misfire_grace_time": 60,  # Allow 60s late execution
    }

    _scheduler = AsyncIOScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone="UTC",
    )

    _register_push_sweep_job(sweep_service, interval_seconds)

    _scheduler.start()
    logger.info(f"Push notification sweep scheduled (every {interval_seconds} seconds)")


def _register_push_sweep_job(sweep_service: PushSweepService, interval_seconds: int) -> None:
    """
    Register the push sweep job.

    Args:
        sweep_service: Service whose run_sweep is scheduled
        interval_seconds: Seconds between ticks
    """
    if _scheduler is None:
        logger.error("Cannot register job: scheduler not initialized")
        return

    _scheduler.add_job(
        func=sweep_service.run_sweep,
        trigger=IntervalTrigger(seconds=interval_seconds),
        id=PUSH_SWEEP_JOB_ID,
        name="Push Notification Sweep",
        replace_existing=True,
    )


async def shutdown_scheduler() -> None:
    """
    Shut down the background job scheduler.

    HOW: Calls scheduler.shutdown() without waiting; an in-flight sweep
    finishes on its own.
    """
    global _scheduler

    if _scheduler is None:
        logger.info("Scheduler not running")
        return

    if _scheduler.running:
        logger.info("Shutting down scheduler...")
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down successfully")

    _scheduler = None


def get_scheduler_status() -> dict:
    """
    Get scheduler status information.

    WHAT: Returns scheduler state and job info for the health endpoint.

    Returns:
        Dict with scheduler status and job details
    """
    if _scheduler is None:
        return {
            "running": False,
            "jobs": [],
            "message": "Scheduler not initialized",
        }

    jobs = []
    for job in _scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if job.next_run_time else None,
            "trigger": str(job.trigger),
        })

    return {
        "running": _scheduler.running,
        "jobs": jobs,
        "message": "Scheduler is running" if _scheduler.running else "Scheduler is paused",
    }
