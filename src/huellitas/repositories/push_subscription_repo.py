"""Push subscription repository."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.push_subscription import PushSubscriptionRow
from huellitas.repositories.base import BaseRepository
from huellitas.services.id_generator import generate_id


class PushSubscriptionRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, PushSubscriptionRow)

    async def get_by_endpoint(self, endpoint: str) -> PushSubscriptionRow | None:
        return await self.get_by_id("endpoint", endpoint)

    async def upsert(self, endpoint: str, **fields: Any) -> PushSubscriptionRow:
        """Endpoint is globally unique: re-subscribing refreshes the existing row."""
        existing = await self.get_by_endpoint(endpoint)
        if existing:
            return await self.update(existing, **fields)
        return await self.create(id=generate_id("sub_"), endpoint=endpoint, **fields)

    async def deactivate(self, user_id: str, endpoint: str, when: datetime) -> PushSubscriptionRow | None:
        """Flip is_active off. The row is kept."""
        row = await self.get_by_endpoint(endpoint)
        if row is None or row.user_id != user_id:
            return None
        return await self.update(row, is_active=False, last_used_at=when)

    async def list_active_for_user(self, user_id: str) -> list[PushSubscriptionRow]:
        stmt = select(PushSubscriptionRow).where(
            PushSubscriptionRow.user_id == user_id,
            PushSubscriptionRow.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
