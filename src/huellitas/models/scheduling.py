"""Pydantic records for deferred and recurring notifications."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from huellitas.models.enums import ScheduleStatus


class ScheduleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    dog_id: str | None = Field(None, max_length=128)
    template_key: str = Field(..., min_length=1, max_length=100)
    variables: dict[str, Any] = Field(default_factory=dict)
    scheduled_for: datetime
    recurrence_rule: str | None = Field(None, max_length=200)

    @field_validator("scheduled_for")
    @classmethod
    def _require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("scheduled_for must carry a timezone offset")
        return v


class ScheduledNotification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    dog_id: str | None = None
    template_key: str
    variables: dict[str, Any] = Field(default_factory=dict)
    scheduled_for: datetime
    is_recurring: bool
    recurrence_rule: str | None = None
    status: ScheduleStatus
    notification_id: str | None = None
    error: str | None = None
    parent_id: str | None = None


class TickResult(BaseModel):
    """Outcome of one scheduler pass."""

    processed: int = 0
    sent: int = 0
    failed: int = 0
    rescheduled: int = 0
    skipped: bool = False
    sent_ids: list[str] = Field(default_factory=list)
    failed_ids: list[str] = Field(default_factory=list)
