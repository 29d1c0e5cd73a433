"""
Scheduler module for periodic background tasks.
Uses APScheduler's AsyncIOScheduler.

Jobs:
  - expired session sweep: marks live sessions past their deadline as
    expired so they stop showing up as active. Requests already expire
    sessions lazily, so this is housekeeping and safe to run on every worker.
  - rate limit purge: drops counters whose window has closed.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.dependencies import get_db, get_rate_limit_policy, get_rate_limit_store
from app.domain.clock import utcnow
from app.services.rate_limit_service import RateLimiter

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def sweep_expired_sessions() -> int:
    """Flip every overdue active/paused session to expired."""
    db = get_db()
    try:
        count = await db.expire_stale_sessions(utcnow())
    except Exception as exc:
        logger.error("Expired session sweep failed: %s", exc)
        return 0
    if count:
        logger.info("Expired %d stale mock session(s)", count)
    return count


async def purge_rate_limits() -> int:
    limiter = RateLimiter(store=get_rate_limit_store(), policy=get_rate_limit_policy())
    removed = await limiter.purge()
    if removed:
        logger.info("Purged %d expired rate limit entr(ies)", removed)
    return removed


def start_scheduler():
    """Start the background scheduler unless disabled in settings."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled by configuration.")
        return

    scheduler.add_job(
        sweep_expired_sessions,
        IntervalTrigger(minutes=settings.expiry_sweep_minutes),
        id="expired_session_sweep",
        replace_existing=True,
    )
    scheduler.add_job(
        purge_rate_limits,
        IntervalTrigger(hours=1),
        id="rate_limit_purge",
        replace_existing=True,
    )

    scheduler.start()

    job = scheduler.get_job("expired_session_sweep")
    if job:
        logger.info(f"📅 Scheduler started. Next session sweep at: {job.next_run_time}")


def shutdown_scheduler():
    """Stop the scheduler if it was started."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler shut down.")
