"""
Background job scheduler.

Uses APScheduler to run periodic jobs:
- SLA sweep: flags (and optionally escalates) breached issues, hourly by default
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.tasks.worker import background_worker

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def sla_sweep_job():
    """
    Periodic SLA breach sweep.

    Skipped when a manually triggered sweep is still running.
    """
    if background_worker.is_running:
        logger.info("SLA sweep skipped: another task is running")
        return

    logger.info("Starting scheduled SLA sweep")
    await background_worker.run_sla_sweep()


def setup_scheduler():
    """
    Configure and start the background scheduler.

    Jobs configured:
    1. SLA sweep every SLA_SWEEP_INTERVAL_MINUTES minutes
    """
    if scheduler.running:
        logger.warning("Scheduler is already running")
        return

    scheduler.add_job(
        sla_sweep_job,
        IntervalTrigger(minutes=settings.SLA_SWEEP_INTERVAL_MINUTES),
        id="sla_sweep",
        name="SLA Breach Sweep",
        replace_existing=True,
        misfire_grace_time=600,  # 10 minute grace period
        coalesce=True  # Combine missed runs into one
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started (SLA sweep every "
        f"{settings.SLA_SWEEP_INTERVAL_MINUTES} minutes)"
    )


def shutdown_scheduler():
    """
    Gracefully shutdown the scheduler.
    Waits for running jobs to complete before shutting down.
    """
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
    else:
        logger.info("Scheduler was not running")


def get_job_status() -> list:
    """
    Get status of all scheduled jobs.

    Returns:
        List of job status dictionaries containing:
        - id: Job identifier
        - name: Human-readable job name
        - next_run: ISO-formatted next run time (or None)
        - trigger: Trigger description
    """
    jobs = []
    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if next_run else None,
            "trigger": str(job.trigger)
        })
    return jobs
