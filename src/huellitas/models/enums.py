"""String enums for the notification data model."""

from enum import StrEnum


class Category(StrEnum):
    MEDICAL = "medical"
    TRANSPORT = "transport"
    BEHAVIOR = "behavior"
    ROUTINE = "routine"
    TRAINING = "training"
    TIPS = "tips"
    GENERAL = "general"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


class ScheduleStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PushState(StrEnum):
    NO_PERMISSION = "no_permission"
    PERMISSION_REQUESTED = "permission_requested"
    PERMISSION_GRANTED = "permission_granted"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class PermissionResult(StrEnum):
    """What the device capability answers to a permission prompt."""

    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


class DeliveryStatus(StrEnum):
    DELIVERED = "delivered"
    ATTEMPTED = "attempted"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


class DeviceType(StrEnum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"
