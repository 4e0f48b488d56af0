"""Deferred and recurring notification requests."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, TimestampMixin, UTCDateTime


class ScheduledNotificationRow(Base, TimestampMixin):
    __tablename__ = "scheduled_notifications"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    dog_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    template_key: Mapped[str] = mapped_column(
        String(100), ForeignKey("notification_templates.template_key"), nullable=False
    )
    variables: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    scheduled_for: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_rule: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    # Set once the entry leaves 'pending'
    notification_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    # Recurring chain: the entry whose firing produced this one
    parent_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
