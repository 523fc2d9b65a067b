import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pytz import utc

from app.config import settings
from app.services.cache import cache

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=utc)


async def purge_expired_entries():
    """
    Periodically drops cache entries whose TTL has elapsed so that keys
    nobody asks for again do not stay in memory.
    """
    purged = cache.purge_expired()
    if not purged:
        logger.debug("No expired cache entries to purge.")
        return
    logger.info(f"Purged {purged} expired cache entries.")


def start():
    logger.info("Adding purge_expired_entries job to scheduler")
    scheduler.add_job(
        purge_expired_entries,
        "interval",
        seconds=settings.purge_interval,
        id="purge_expired_entries",
        replace_existing=True,
    )
    scheduler.start()


def shutdown():
    """Shuts down the scheduler."""
    scheduler.shutdown()
