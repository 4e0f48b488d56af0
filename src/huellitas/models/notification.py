"""Pydantic records for notifications, templates and delivery logs."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from huellitas.models.enums import Category, DeliveryStatus, Priority


class RenderedText(BaseModel):
    """Output of template resolution."""

    title: str
    body: str


class Classification(BaseModel):
    category: Category
    priority: Priority


class NotificationCreate(BaseModel):
    """Template-pipeline create request."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    dog_id: str | None = Field(None, max_length=128)
    template_key: str = Field(..., min_length=1, max_length=100)
    variables: dict[str, Any] = Field(default_factory=dict)


class DirectNotificationCreate(BaseModel):
    """Direct insert with caller-supplied text (legacy helper path)."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    dog_id: str | None = Field(None, max_length=128)
    title: str = Field(..., min_length=1, max_length=500)
    message: str = Field(..., min_length=1)
    category: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def _require_timezone(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            raise ValueError("expires_at must carry a timezone offset")
        return v


class Notification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    dog_id: str | None = None
    title: str
    message: str
    # None only for legacy rows not yet migrated
    category: Category | None = None
    priority: Priority | None = None
    read: bool = False
    read_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    sent_at: datetime | None = None
    expires_at: datetime | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _none_data(cls, v):
        return v or {}

    @model_validator(mode="after")
    def _expiry_not_before_creation(self):
        if self.expires_at is not None and self.expires_at < self.created_at:
            raise ValueError("expires_at must not precede created_at")
        return self


class NotificationList(BaseModel):
    notifications: list[Notification]
    unread_count: int
    limit: int
    offset: int


class NotificationTemplate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    template_key: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=200)
    category: Category
    title_pattern: str = Field(..., min_length=1)
    body_pattern: str = Field(..., min_length=1)
    is_active: bool = True


class TemplateUpsert(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    category: Category
    title_pattern: str = Field(..., min_length=1)
    body_pattern: str = Field(..., min_length=1)
    is_active: bool = True


class NotificationLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    log_id: str
    notification_id: str
    user_id: str
    title: str
    body: str
    category: Category
    priority: Priority
    sent_push: bool
    delivery_status: DeliveryStatus
    delivery_confirmed: bool = False
    opened_at: datetime | None = None
    sent_at: datetime
