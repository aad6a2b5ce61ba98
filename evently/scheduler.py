# evently/scheduler.py
"""
Background task scheduler for periodic maintenance.

Uses APScheduler to run:
- Reconciliation of event confirmed counts against active attendance records
"""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED

from evently.background_tasks.reconciliation_tasks import run_reconciliation
from evently.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def _on_job_error(event):
    """Log scheduler job errors with full context."""
    exc = event.exception
    logger.error(
        "Scheduled job FAILED: job_id=%s error=%s",
        event.job_id, exc,
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )


def _on_job_missed(event):
    """Log when a scheduled job misses its execution window."""
    logger.warning(
        "Scheduled job MISSED: job_id=%s scheduled_run_time=%s",
        event.job_id,
        event.scheduled_run_time,
    )


def init_scheduler():
    """
    Initialize the background scheduler with all periodic tasks.

    This is called once when the application starts up.
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return scheduler

    scheduler = BackgroundScheduler(
        timezone="UTC",
        job_defaults={
            'coalesce': True,  # Combine missed executions
            'max_instances': 1,  # Only one instance of each job at a time
            'misfire_grace_time': 60
        }
    )

    scheduler.add_job(
        func=run_reconciliation,
        trigger=IntervalTrigger(minutes=settings.RECONCILIATION_INTERVAL_MINUTES),
        id='reconcile_event_counts',
        name='Reconcile Event Confirmed Counts',
        replace_existing=True
    )
    logger.info(
        f"Scheduled job: reconcile_event_counts "
        f"(every {settings.RECONCILIATION_INTERVAL_MINUTES} minutes)"
    )

    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_listener(_on_job_missed, EVENT_JOB_MISSED)

    scheduler.start()
    logger.info("Background scheduler started")
    return scheduler


def shutdown_scheduler():
    """Stop the scheduler if it was started."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")
