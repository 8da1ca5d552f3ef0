import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")


def start_scheduler() -> None:
    from ws.events import expire_idle_sessions_job

    # Close listening sessions nobody has touched for a while, every 30 minutes
    scheduler.add_job(expire_idle_sessions_job, "interval", minutes=30,
                      id="expire_idle_sessions", replace_existing=True)
    scheduler.start()
    logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
