"""Pydantic records for device push subscriptions and relay payloads."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from huellitas.models.enums import DeviceType


class DeviceSubscription(BaseModel):
    """What the device capability hands back after ``pushManager.subscribe``."""

    endpoint: str = Field(..., min_length=1, max_length=2000)
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscriptionRegister(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    endpoint: str = Field(..., min_length=1, max_length=2000)
    p256dh_key: str = Field(..., min_length=1)
    auth_key: str = Field(..., min_length=1)
    user_agent: str | None = None


class SubscriptionRelease(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    endpoint: str = Field(..., min_length=1, max_length=2000)


class PushSubscription(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    endpoint: str
    p256dh_key: str
    auth_key: str
    device_type: DeviceType
    browser_name: str
    is_active: bool
    last_used_at: datetime | None = None


class RelayNotification(BaseModel):
    title: str
    body: str
    icon: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class RelayRequest(BaseModel):
    """Body POSTed to the push relay."""

    userId: str
    notification: RelayNotification


class RelayResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool
    error: str | None = None


class PushTestRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=128)
    notification: RelayNotification
