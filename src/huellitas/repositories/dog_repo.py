"""Dog roster repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.db.models.dog import DogRow
from huellitas.repositories.base import BaseRepository


class DogRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, DogRow)

    async def list_active(self) -> list[DogRow]:
        stmt = select(DogRow).where(DogRow.active == True).order_by(DogRow.id)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
