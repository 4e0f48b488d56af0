"""Scheduled notification repository."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.scheduled_notification import ScheduledNotificationRow
from huellitas.repositories.base import BaseRepository


class ScheduledNotificationRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ScheduledNotificationRow)

    async def get(self, scheduled_id: str) -> ScheduledNotificationRow | None:
        return await self.get_by_id("id", scheduled_id)

    async def list_due(self, now: datetime) -> list[ScheduledNotificationRow]:
        stmt = (
            select(ScheduledNotificationRow)
            .where(
                ScheduledNotificationRow.status == "pending",
                ScheduledNotificationRow.scheduled_for <= now,
            )
            .order_by(ScheduledNotificationRow.scheduled_for.asc(), ScheduledNotificationRow.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, status: str | None = None) -> list[ScheduledNotificationRow]:
        stmt = select(ScheduledNotificationRow).where(ScheduledNotificationRow.user_id == user_id)
        if status:
            stmt = stmt.where(ScheduledNotificationRow.status == status)
        stmt = stmt.order_by(ScheduledNotificationRow.scheduled_for.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_pending(self) -> int:
        return await self.count(ScheduledNotificationRow.status == "pending")
