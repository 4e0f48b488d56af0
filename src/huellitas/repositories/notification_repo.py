"""Notification repository."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.notification import NotificationRow
from huellitas.repositories.base import BaseRepository


class NotificationRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, NotificationRow)

    async def get(self, notification_id: str) -> NotificationRow | None:
        return await self.get_by_id("id", notification_id)

    async def delete(self, notification_id: str) -> bool:
        return await self.delete_by_id("id", notification_id)

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> list[NotificationRow]:
        stmt = select(NotificationRow).where(NotificationRow.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationRow.read == False)  # noqa: E712
        stmt = (
            stmt.order_by(NotificationRow.created_at.desc(), NotificationRow.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, user_id: str) -> int:
        return await self.count(
            NotificationRow.user_id == user_id,
            NotificationRow.read == False,  # noqa: E712
        )

    async def mark_all_read(self, user_id: str, read_at: datetime) -> list[str]:
        """Mark every unread row read. Returns the ids that changed."""
        stmt = select(NotificationRow.id).where(
            NotificationRow.user_id == user_id, NotificationRow.read == False  # noqa: E712
        )
        ids = list((await self.session.execute(stmt)).scalars().all())
        if ids:
            await self.session.execute(
                update(NotificationRow)
                .where(NotificationRow.id.in_(ids))
                .values(read=True, read_at=read_at)
            )
        return ids

    async def list_oldest_first(self) -> list[NotificationRow]:
        """Every row, oldest first (migration order)."""
        stmt = select(NotificationRow).order_by(NotificationRow.created_at.asc(), NotificationRow.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_created_since(self, since: datetime) -> list[NotificationRow]:
        stmt = select(NotificationRow).where(NotificationRow.created_at >= since)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def any_classified(self) -> bool:
        stmt = select(NotificationRow.id).where(NotificationRow.category.is_not(None)).limit(1)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def expire_older_than(self, cutoff: datetime, now: datetime) -> int:
        """Stamp expires_at=now on rows created before cutoff that never got an expiry."""
        stmt = (
            update(NotificationRow)
            .where(NotificationRow.created_at < cutoff, NotificationRow.expires_at.is_(None))
            .values(expires_at=now)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete_expired_before(self, cutoff: datetime) -> int:
        """Hard-delete rows whose expiry passed before cutoff. Rows without an expiry stay."""
        stmt = delete(NotificationRow).where(
            NotificationRow.expires_at.is_not(None), NotificationRow.expires_at < cutoff
        )
        result = await self.session.execute(stmt)
        return result.rowcount
