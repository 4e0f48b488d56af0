"""Per (user, dog) delivery preferences."""

from datetime import time

from sqlalchemy import JSON, Boolean, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, TimestampMixin


class NotificationPreferenceRow(Base, TimestampMixin):
    __tablename__ = "notification_preferences"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    dog_id: Mapped[str] = mapped_column(String(128), nullable=False)
    categories: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    priority_filter: Mapped[str] = mapped_column(String(20), nullable=False, default="low")
    device_tokens: Mapped[list | None] = mapped_column(JSON, nullable=True)
    quiet_hours_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    quiet_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    quiet_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    # Legacy boolean flags, superseded by `categories` after migration
    vaccine_reminders: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    routine_reminders: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "dog_id", name="uq_notification_preference_user_dog"),
    )
