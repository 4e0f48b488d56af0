"""Server-side bookkeeping for device push subscriptions."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.errors.exceptions import NotFoundError
from huellitas.models.push import DeviceSubscription, PushSubscription
from huellitas.repositories.push_subscription_repo import PushSubscriptionRepository
from huellitas.services.push.device import detect_browser_name, detect_device_type

logger = logging.getLogger(__name__)


async def register_subscription(
    session: AsyncSession,
    user_id: str,
    device: DeviceSubscription,
    user_agent: str | None,
    now: datetime,
) -> PushSubscription:
    """Upsert on endpoint; a re-subscribe reactivates the existing row."""
    repo = PushSubscriptionRepository(session)
    row = await repo.upsert(
        device.endpoint,
        user_id=user_id,
        p256dh_key=device.p256dh,
        auth_key=device.auth,
        user_agent=user_agent,
        device_type=detect_device_type(user_agent).value,
        browser_name=detect_browser_name(user_agent),
        is_active=True,
        last_used_at=now,
    )
    logger.info("Registered push subscription %s for user %s (%s/%s)", row.id, user_id, row.device_type, row.browser_name)
    return PushSubscription.model_validate(row)


async def release_subscription(
    session: AsyncSession,
    user_id: str,
    endpoint: str,
    now: datetime,
) -> PushSubscription:
    repo = PushSubscriptionRepository(session)
    row = await repo.deactivate(user_id, endpoint, now)
    if row is None:
        raise NotFoundError("PushSubscription", endpoint)
    logger.info("Deactivated push subscription %s for user %s", row.id, user_id)
    return PushSubscription.model_validate(row)
