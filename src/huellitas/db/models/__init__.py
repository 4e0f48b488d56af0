"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from huellitas.db.models.dog import DogRow
from huellitas.db.models.notification import NotificationRow
from huellitas.db.models.notification_log import NotificationLogRow
from huellitas.db.models.notification_preference import NotificationPreferenceRow
from huellitas.db.models.notification_template import NotificationTemplateRow
from huellitas.db.models.push_subscription import PushSubscriptionRow
from huellitas.db.models.scheduled_notification import ScheduledNotificationRow

__all__ = [
    "DogRow",
    "NotificationRow",
    "NotificationLogRow",
    "NotificationPreferenceRow",
    "NotificationTemplateRow",
    "PushSubscriptionRow",
    "ScheduledNotificationRow",
]
