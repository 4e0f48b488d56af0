"""Minimal dog roster read by the migrator to seed routine reminders."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, TimestampMixin


class DogRow(Base, TimestampMixin):
    __tablename__ = "dogs"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
