"""Registered device endpoints capable of receiving web push."""

from datetime import datetime

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, TimestampMixin, UTCDateTime


class PushSubscriptionRow(Base, TimestampMixin):
    __tablename__ = "push_subscriptions"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(String(2000), nullable=False, unique=True)
    p256dh_key: Mapped[str] = mapped_column(String(500), nullable=False)
    auth_key: Mapped[str] = mapped_column(String(500), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False, default="desktop")
    browser_name: Mapped[str] = mapped_column(String(50), nullable=False, default="Unknown")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
