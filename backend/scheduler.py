"""Background auto refresh using APScheduler.

The scheduler only triggers refreshes; all logic lives in RefreshService.
"""

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from database import get_session_local
from services.refresh_service import RefreshInProgressError, RefreshService

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "portfolio_refresh"

_SCHEDULER: Optional[BackgroundScheduler] = None


def run_refresh_job(service: Optional[RefreshService] = None) -> None:
    """One scheduled refresh, with its own database session."""
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        (service or RefreshService()).trigger_refresh(db)
    except RefreshInProgressError:
        logger.info("Scheduled refresh skipped: refresh already in progress")
    except Exception:
        logger.error("Scheduled refresh failed", exc_info=True)
    finally:
        db.close()


def start_scheduler(interval_minutes: int) -> BackgroundScheduler:
    """Start the background scheduler with the refresh job."""
    global _SCHEDULER

    if _SCHEDULER is not None:
        return _SCHEDULER

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_refresh_job,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    _SCHEDULER = scheduler
    logger.info("Auto refresh scheduled every %d minutes", interval_minutes)
    return scheduler


def stop_scheduler() -> None:
    global _SCHEDULER

    if _SCHEDULER is None:
        return
    _SCHEDULER.shutdown(wait=False)
    _SCHEDULER = None
    logger.info("Auto refresh stopped")


def apply_schedule(enabled: bool, interval_minutes: int) -> None:
    """Start, stop or reschedule the refresh job to match settings."""
    if not enabled:
        stop_scheduler()
        return
    if _SCHEDULER is None:
        start_scheduler(interval_minutes)
        return
    _SCHEDULER.reschedule_job(REFRESH_JOB_ID, trigger=IntervalTrigger(minutes=interval_minutes))
    logger.info("Auto refresh rescheduled every %d minutes", interval_minutes)
