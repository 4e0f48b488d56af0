"""Notification preference repository (one row per user/dog pair)."""

from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.notification_preference import NotificationPreferenceRow
from huellitas.repositories.base import BaseRepository
from huellitas.services.id_generator import generate_id


class PreferenceRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, NotificationPreferenceRow)

    async def get_by_natural_key(self, user_id: str, dog_id: str) -> NotificationPreferenceRow | None:
        stmt = select(NotificationPreferenceRow).where(
            and_(
                NotificationPreferenceRow.user_id == user_id,
                NotificationPreferenceRow.dog_id == dog_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[NotificationPreferenceRow]:
        return await self.list_by_field("user_id", user_id)

    async def upsert(self, user_id: str, dog_id: str, **fields: Any) -> NotificationPreferenceRow:
        """Overwrite the (user_id, dog_id) row, creating it on first write."""
        existing = await self.get_by_natural_key(user_id, dog_id)
        if existing:
            return await self.update(existing, **fields)
        return await self.create(id=generate_id("pref_"), user_id=user_id, dog_id=dog_id, **fields)
