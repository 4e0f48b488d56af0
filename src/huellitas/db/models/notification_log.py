"""Append-only delivery records."""

from datetime import datetime

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, UTCDateTime, utcnow


class NotificationLogRow(Base):
    __tablename__ = "notification_logs"

    log_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    # No FK: logs outlive hard-deleted notifications
    notification_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    sent_push: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    delivery_status: Mapped[str] = mapped_column(String(20), nullable=False, default="attempted")
    delivery_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    opened_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
