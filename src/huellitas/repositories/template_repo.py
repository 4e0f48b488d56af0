"""Notification template repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.notification_template import NotificationTemplateRow
from huellitas.repositories.base import BaseRepository


class TemplateRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, NotificationTemplateRow)

    async def get(self, template_key: str) -> NotificationTemplateRow | None:
        return await self.get_by_id("template_key", template_key)

    async def get_active(self, template_key: str) -> NotificationTemplateRow | None:
        stmt = select(NotificationTemplateRow).where(
            NotificationTemplateRow.template_key == template_key,
            NotificationTemplateRow.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> list[NotificationTemplateRow]:
        stmt = (
            select(NotificationTemplateRow)
            .where(NotificationTemplateRow.is_active == True)  # noqa: E712
            .order_by(NotificationTemplateRow.template_key)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
