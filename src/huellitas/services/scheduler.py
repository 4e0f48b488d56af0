"""Deferred and recurring notifications.

Entries move ``pending -> sent | failed | cancelled`` and never leave a
terminal state. Firing a recurring entry inserts a fresh pending entry for
the next occurrence; the fired entry and its rule are left untouched. There
is no retry: a failed entry stays failed until someone schedules it again.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from huellitas.errors.exceptions import (
    HuellitasError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from huellitas.models.enums import ScheduleStatus
from huellitas.models.notification import Notification, NotificationCreate
from huellitas.models.scheduling import ScheduledNotification, ScheduleRequest, TickResult
from huellitas.repositories.scheduled_repo import ScheduledNotificationRepository
from huellitas.services.delivery import DeliveryService
from huellitas.services.id_generator import generate_id
from huellitas.services.notification_store import NotificationStore
from huellitas.services.recurrence import RecurrenceRule, validate_rule
from huellitas.services.templates import TemplateResolver

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    """Owns its sessions: every due entry is fired and committed on its own."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tz: tzinfo = timezone.utc,
        delivery: Callable[[AsyncSession], DeliveryService] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.tz = tz
        self.delivery = delivery
        self.clock = clock
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def schedule(self, request: ScheduleRequest) -> ScheduledNotification:
        rule = validate_rule(request.recurrence_rule)
        if request.scheduled_for < self.clock():
            logger.warning(
                "Scheduling %s for user %s in the past (%s); it fires on the next tick",
                request.template_key, request.user_id, request.scheduled_for.isoformat(),
            )

        async with self.session_factory() as session:
            await TemplateResolver(session).get_template(request.template_key)
            row = await ScheduledNotificationRepository(session).create(
                id=generate_id("sch_"),
                user_id=request.user_id,
                dog_id=request.dog_id,
                template_key=request.template_key,
                variables=dict(request.variables),
                scheduled_for=request.scheduled_for,
                is_recurring=rule is not None,
                recurrence_rule=rule,
                status=ScheduleStatus.PENDING.value,
            )
            await session.commit()
            logger.info("Scheduled %s (%s) for %s", row.id, row.template_key, row.scheduled_for.isoformat())
            return ScheduledNotification.model_validate(row)

    async def cancel(self, scheduled_id: str) -> ScheduledNotification:
        async with self.session_factory() as session:
            repo = ScheduledNotificationRepository(session)
            row = await repo.get(scheduled_id)
            if row is None:
                raise NotFoundError("ScheduledNotification", scheduled_id)
            if row.status != ScheduleStatus.PENDING.value:
                raise InvalidStateTransitionError("ScheduledNotification", row.status, ScheduleStatus.CANCELLED.value)
            await repo.update(row, status=ScheduleStatus.CANCELLED.value, processed_at=self.clock())
            await session.commit()
            logger.info("Cancelled scheduled notification %s", scheduled_id)
            return ScheduledNotification.model_validate(row)

    async def list_for_user(self, user_id: str, status: ScheduleStatus | None = None) -> list[ScheduledNotification]:
        async with self.session_factory() as session:
            rows = await ScheduledNotificationRepository(session).list_for_user(
                user_id, status.value if status else None
            )
            return [ScheduledNotification.model_validate(r) for r in rows]

    async def tick(self, now: datetime | None = None) -> TickResult:
        """Fire every pending entry due at ``now``. A tick already running makes this one a no-op."""
        if now is not None and now.tzinfo is None:
            raise ValidationError("Tick time must carry a timezone offset", {"now": now.isoformat()})
        if self._lock.locked():
            logger.info("Scheduler tick skipped: previous tick still running")
            return TickResult(skipped=True)

        async with self._lock:
            now = now or self.clock()
            async with self.session_factory() as session:
                due_ids = [r.id for r in await ScheduledNotificationRepository(session).list_due(now)]

            result = TickResult(processed=len(due_ids))
            for entry_id in due_ids:
                await self._fire(entry_id, now, result)

        if result.processed:
            logger.info(
                "Scheduler tick: %d due, %d sent, %d failed, %d rescheduled",
                result.processed, result.sent, result.failed, result.rescheduled,
            )
        return result

    async def _fire(self, entry_id: str, now: datetime, result: TickResult) -> None:
        notification: Notification | None = None
        try:
            async with self.session_factory() as session:
                repo = ScheduledNotificationRepository(session)
                entry = await repo.get(entry_id)
                if entry is None or entry.status != ScheduleStatus.PENDING.value:
                    return

                notification = await NotificationStore(session).create(
                    NotificationCreate(
                        user_id=entry.user_id,
                        dog_id=entry.dog_id,
                        template_key=entry.template_key,
                        variables=entry.variables or {},
                    )
                )

                rescheduled = False
                if entry.is_recurring and entry.recurrence_rule:
                    next_at = RecurrenceRule.parse(entry.recurrence_rule).next_after(entry.scheduled_for, self.tz)
                    await repo.create(
                        id=generate_id("sch_"),
                        user_id=entry.user_id,
                        dog_id=entry.dog_id,
                        template_key=entry.template_key,
                        variables=dict(entry.variables or {}),
                        scheduled_for=next_at,
                        is_recurring=True,
                        recurrence_rule=entry.recurrence_rule,
                        status=ScheduleStatus.PENDING.value,
                        parent_id=entry.id,
                    )
                    rescheduled = True

                await repo.update(
                    entry,
                    status=ScheduleStatus.SENT.value,
                    notification_id=notification.id,
                    processed_at=now,
                )
                await session.commit()
        except (HuellitasError, SQLAlchemyError, PydanticValidationError) as exc:
            logger.warning("Scheduled notification %s failed: %s", entry_id, exc)
            await self._mark_failed(entry_id, now, str(exc))
            result.failed += 1
            result.failed_ids.append(entry_id)
            return

        result.sent += 1
        result.sent_ids.append(entry_id)
        if rescheduled:
            result.rescheduled += 1

        if self.delivery is not None:
            await self._deliver(notification)

    async def _mark_failed(self, entry_id: str, now: datetime, error: str) -> None:
        async with self.session_factory() as session:
            repo = ScheduledNotificationRepository(session)
            entry = await repo.get(entry_id)
            if entry is None or entry.status != ScheduleStatus.PENDING.value:
                return
            await repo.update(entry, status=ScheduleStatus.FAILED.value, error=error[:2000], processed_at=now)
            await session.commit()

    async def _deliver(self, notification: Notification) -> None:
        try:
            async with self.session_factory() as session:
                await self.delivery(session).dispatch(notification)
                await session.commit()
        except SQLAlchemyError:
            # The notification is already stored; only the push log is lost
            logger.exception("Could not record push delivery for notification %s", notification.id)
