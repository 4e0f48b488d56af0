"""Notification store: the template pipeline plus read/update/delete.

``create`` logs the notification with ``sent_push=True`` before any device
delivery is attempted. That is the long-standing observable contract and is
kept as is; real relay outcomes are appended as separate log rows by
``huellitas.services.delivery``.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.notification import NotificationRow
from huellitas.errors.exceptions import NotFoundError, ValidationError
from huellitas.models.enums import DeliveryStatus
from huellitas.models.notification import (
    DirectNotificationCreate,
    Notification,
    NotificationCreate,
    NotificationList,
)
from huellitas.repositories.notification_log_repo import NotificationLogRepository
from huellitas.repositories.notification_repo import NotificationRepository
from huellitas.services.classifier import Classifier, KeywordClassifier, normalize_category
from huellitas.services.id_generator import generate_id
from huellitas.services.templates import TemplateResolver

logger = logging.getLogger(__name__)

# Expired rows are kept this long after expires_at before being deleted
EXPIRED_RETENTION_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationStore:
    """Persists notifications for one session. Flushes; the caller commits."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: TemplateResolver | None = None,
        classifier: Classifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.notifications = NotificationRepository(session)
        self.logs = NotificationLogRepository(session)
        self.resolver = resolver or TemplateResolver(session)
        self.classifier = classifier or KeywordClassifier()
        self.clock = clock

    async def create(self, request: NotificationCreate) -> Notification:
        """Render, classify, persist and log a notification from a template."""
        rendered = await self.resolver.resolve(request.template_key, request.variables)
        result = self.classifier.classify(rendered.title, rendered.body)
        now = self.clock()

        row = await self.notifications.create(
            id=generate_id("ntf_"),
            user_id=request.user_id,
            dog_id=request.dog_id,
            title=rendered.title,
            message=rendered.body,
            category=result.category.value,
            priority=result.priority.value,
            read=False,
            data={"template_key": request.template_key, "variables": dict(request.variables)},
            created_at=now,
            sent_at=now,
        )
        await self._append_log(row, sent_at=now)
        logger.info(
            "Created notification %s for user %s (template=%s, category=%s, priority=%s)",
            row.id, row.user_id, request.template_key, row.category, row.priority,
        )
        return Notification.model_validate(row)

    async def create_direct(self, request: DirectNotificationCreate) -> Notification:
        """Insert caller-written text. Category may be given; priority is always classified."""
        result = self.classifier.classify(request.title, request.message)
        category = normalize_category(request.category) or result.category
        now = self.clock()
        if request.expires_at is not None and request.expires_at < now:
            raise ValidationError("expires_at must not precede created_at")

        row = await self.notifications.create(
            id=generate_id("ntf_"),
            user_id=request.user_id,
            dog_id=request.dog_id,
            title=request.title,
            message=request.message,
            category=category.value,
            priority=result.priority.value,
            read=False,
            data=dict(request.data),
            created_at=now,
            sent_at=now,
            expires_at=request.expires_at,
        )
        await self._append_log(row, sent_at=now)
        logger.info("Created direct notification %s for user %s (category=%s)", row.id, row.user_id, row.category)
        return Notification.model_validate(row)

    async def _append_log(self, row: NotificationRow, sent_at: datetime) -> None:
        await self.logs.create(
            log_id=generate_id("log_"),
            notification_id=row.id,
            user_id=row.user_id,
            title=row.title,
            body=row.message,
            category=row.category,
            priority=row.priority,
            sent_push=True,
            delivery_status=DeliveryStatus.ATTEMPTED.value,
            delivery_confirmed=False,
            sent_at=sent_at,
        )

    async def _require(self, notification_id: str) -> NotificationRow:
        row = await self.notifications.get(notification_id)
        if row is None:
            raise NotFoundError("Notification", notification_id)
        return row

    async def get(self, notification_id: str) -> Notification:
        return Notification.model_validate(await self._require(notification_id))

    async def mark_read(self, notification_id: str) -> Notification:
        """Idempotent: an already-read notification keeps its first read_at."""
        row = await self._require(notification_id)
        if not row.read:
            now = self.clock()
            await self.notifications.update(row, read=True, read_at=now)
            await self.logs.mark_opened(row.id, now)
        return Notification.model_validate(row)

    async def mark_all_read(self, user_id: str) -> int:
        now = self.clock()
        ids = await self.notifications.mark_all_read(user_id, now)
        if ids:
            await self.logs.mark_opened_many(ids, now)
        return len(ids)

    async def purge_expired(self, retention_days: int = EXPIRED_RETENTION_DAYS) -> int:
        """Delete notifications whose expiry lies more than ``retention_days`` in the past."""
        cutoff = self.clock() - timedelta(days=retention_days)
        deleted = await self.notifications.delete_expired_before(cutoff)
        if deleted:
            logger.info("Purged %d notifications expired before %s", deleted, cutoff.isoformat())
        return deleted

    async def delete(self, notification_id: str) -> None:
        """Hard delete. Delivery logs for the notification are kept."""
        if not await self.notifications.delete(notification_id):
            raise NotFoundError("Notification", notification_id)
        logger.info("Deleted notification %s", notification_id)

    async def list(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> NotificationList:
        rows = await self.notifications.list_for_user(user_id, limit=limit, offset=offset, unread_only=unread_only)
        return NotificationList(
            notifications=[Notification.model_validate(r) for r in rows],
            unread_count=await self.notifications.count_unread(user_id),
            limit=limit,
            offset=offset,
        )
