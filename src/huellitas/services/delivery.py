"""Pushes stored notifications to the user's devices through the relay.

Each attempt appends a log row of its own; the row written by
``NotificationStore.create`` is never rewritten.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.errors.exceptions import RelayError
from huellitas.models.enums import DeliveryStatus
from huellitas.models.notification import Notification
from huellitas.models.push import RelayNotification
from huellitas.repositories.notification_log_repo import NotificationLogRepository
from huellitas.repositories.preference_repo import PreferenceRepository
from huellitas.repositories.push_subscription_repo import PushSubscriptionRepository
from huellitas.services.delivery_policy import should_deliver
from huellitas.services.id_generator import generate_id
from huellitas.services.push.relay import PushRelayClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryService:
    def __init__(
        self,
        session: AsyncSession,
        relay: PushRelayClient,
        tz: tzinfo,
        icon: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.relay = relay
        self.tz = tz
        self.icon = icon
        self.clock = clock
        self.logs = NotificationLogRepository(session)

    async def dispatch(self, notification: Notification) -> DeliveryStatus:
        """Apply the user's preferences, then relay. Relay failures are logged, not raised."""
        now = self.clock()
        pref = None
        if notification.dog_id:
            pref = await PreferenceRepository(self.session).get_by_natural_key(
                notification.user_id, notification.dog_id
            )

        allowed, reason = should_deliver(pref, notification.category, notification.priority, now, self.tz)
        if not allowed:
            logger.info("Push suppressed for notification %s (%s)", notification.id, reason)
            await self._log(notification, DeliveryStatus.SUPPRESSED, sent_push=False, now=now)
            return DeliveryStatus.SUPPRESSED

        active = await PushSubscriptionRepository(self.session).list_active_for_user(notification.user_id)
        if not active:
            logger.info("User %s has no active push subscription; notification %s stays in-app", notification.user_id, notification.id)
            await self._log(notification, DeliveryStatus.SUPPRESSED, sent_push=False, now=now)
            return DeliveryStatus.SUPPRESSED

        payload = RelayNotification(
            title=notification.title,
            body=notification.message,
            icon=self.icon,
            data={
                "notificationId": notification.id,
                "category": notification.category.value if notification.category else None,
                "priority": notification.priority.value if notification.priority else None,
                "dogId": notification.dog_id,
            },
        )
        try:
            await self.relay.send(notification.user_id, payload)
        except RelayError as exc:
            logger.warning("Push relay failed for notification %s: %s", notification.id, exc.message)
            await self._log(notification, DeliveryStatus.FAILED, sent_push=True, now=now)
            return DeliveryStatus.FAILED

        await self._log(notification, DeliveryStatus.DELIVERED, sent_push=True, now=now, confirmed=True)
        return DeliveryStatus.DELIVERED

    async def _log(
        self,
        notification: Notification,
        status: DeliveryStatus,
        sent_push: bool,
        now: datetime,
        confirmed: bool = False,
    ) -> None:
        await self.logs.create(
            log_id=generate_id("log_"),
            notification_id=notification.id,
            user_id=notification.user_id,
            title=notification.title,
            body=notification.message,
            category=notification.category.value if notification.category else None,
            priority=notification.priority.value if notification.priority else None,
            sent_push=sent_push,
            delivery_status=status.value,
            delivery_confirmed=confirmed,
            sent_at=now,
        )
