"""Notification log repository. Rows are appended, never rewritten."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.notification_log import NotificationLogRow
from huellitas.repositories.base import BaseRepository


class NotificationLogRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, NotificationLogRow)

    async def list_for_notification(self, notification_id: str) -> list[NotificationLogRow]:
        stmt = (
            select(NotificationLogRow)
            .where(NotificationLogRow.notification_id == notification_id)
            .order_by(NotificationLogRow.sent_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_opened(self, notification_id: str, opened_at: datetime) -> int:
        """The only mutation a log row accepts: first-open timestamp."""
        stmt = (
            update(NotificationLogRow)
            .where(
                NotificationLogRow.notification_id == notification_id,
                NotificationLogRow.opened_at.is_(None),
            )
            .values(opened_at=opened_at)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def mark_opened_many(self, notification_ids: list[str], opened_at: datetime) -> int:
        stmt = (
            update(NotificationLogRow)
            .where(
                NotificationLogRow.notification_id.in_(notification_ids),
                NotificationLogRow.opened_at.is_(None),
            )
            .values(opened_at=opened_at)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
