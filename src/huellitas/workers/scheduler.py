"""Background loop that fires due scheduled notifications and purges expired ones."""

import asyncio
import logging
import uuid

from huellitas.config import settings
from huellitas.dependencies import build_scheduler
from huellitas.services.notification_store import NotificationStore

logger = logging.getLogger(__name__)

_LOCK_KEY = "huellitas:scheduler:tick"

# Delete only while the key still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def tick_once(app, redis=None) -> int:
    """Run one tick unless another instance holds the Redis lock. Returns entries fired."""
    scheduler = build_scheduler(app)
    interval = settings.scheduler_poll_interval_seconds

    token = None
    if redis is not None:
        token = uuid.uuid4().hex
        locked = await redis.set(_LOCK_KEY, token, nx=True, ex=max(interval, 1))
        if not locked:
            logger.debug("Scheduler tick held by another instance")
            return 0
    try:
        result = await scheduler.tick()
    finally:
        if token is not None:
            released = await redis.eval(_RELEASE_SCRIPT, 1, _LOCK_KEY, token)
            if not released:
                logger.warning("Scheduler lock expired before the tick finished; left for its new owner")
    return result.sent


async def purge_expired(app) -> int:
    """Delete notifications that expired more than the retention period ago."""
    async with app.state.db_session_factory() as session:
        deleted = await NotificationStore(session).purge_expired()
        await session.commit()
    return deleted


async def run_scheduler(app) -> None:
    """Background task started from the app lifespan."""
    interval = settings.scheduler_poll_interval_seconds
    maintenance_every = settings.maintenance_interval_seconds
    logger.info(
        "Notification scheduler started (poll_interval=%ds, maintenance_interval=%ds)",
        interval, maintenance_every,
    )

    loop = asyncio.get_running_loop()
    last_purge = None
    while True:
        try:
            await asyncio.sleep(interval)

            if not getattr(app.state, "db_session_factory", None):
                continue

            sent = await tick_once(app, getattr(app.state, "redis", None))
            if sent:
                logger.info("Scheduler fired %d notifications", sent)

            if last_purge is None or loop.time() - last_purge >= maintenance_every:
                await purge_expired(app)
                last_purge = loop.time()

        except asyncio.CancelledError:
            logger.info("Notification scheduler stopped")
            break
        except Exception as exc:
            logger.exception("Scheduler error: %s", exc)
            # Continue running despite errors
