"""Reusable title/body patterns keyed by template_key."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from huellitas.db.base import Base, TimestampMixin


class NotificationTemplateRow(Base, TimestampMixin):
    __tablename__ = "notification_templates"

    template_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    title_pattern: Mapped[str] = mapped_column(String(500), nullable=False)
    body_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
