"""Dashboard statistics over the notification tables."""

from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.models.migration import SystemStats
from huellitas.repositories.notification_repo import NotificationRepository
from huellitas.repositories.scheduled_repo import ScheduledNotificationRepository
from huellitas.repositories.template_repo import TemplateRepository

RECENT_WINDOW = timedelta(days=30)


async def system_stats(session: AsyncSession, now: datetime) -> SystemStats:
    notifications = NotificationRepository(session)
    recent = await notifications.list_created_since(now - RECENT_WINDOW)
    templates = await TemplateRepository(session).list_active()

    return SystemStats(
        recent_notifications=len(recent),
        available_templates=len(templates),
        pending_scheduled=await ScheduledNotificationRepository(session).count_pending(),
        is_migrated=await notifications.any_classified(),
        notifications_by_category=dict(Counter(r.category or "unclassified" for r in recent)),
        notifications_by_priority=dict(Counter(r.priority or "unclassified" for r in recent)),
        templates_by_category=dict(Counter(t.category for t in templates)),
    )
