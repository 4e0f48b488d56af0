"""Decides whether a stored notification should be pushed to a device."""

from datetime import datetime, time, tzinfo

from huellitas.db.models.notification_preference import NotificationPreferenceRow
from huellitas.models.enums import Category, Priority


def is_quiet(now: time, start: time, end: time) -> bool:
    """True when ``now`` falls in [start, end). The window may wrap midnight."""
    if start == end:
        return False
    if start < end:
        return start <= now < end
    return now >= start or now < end


def should_deliver(
    pref: NotificationPreferenceRow | None,
    category: Category | None,
    priority: Priority | None,
    now: datetime,
    tz: tzinfo,
) -> tuple[bool, str]:
    """Return (deliver, reason). No preference row means deliver."""
    if pref is None:
        return True, "no_preference"

    if category is not None and pref.categories:
        if not pref.categories.get(category.value, True):
            return False, "category_disabled"

    if priority is not None:
        try:
            floor = Priority(pref.priority_filter or Priority.LOW.value)
        except ValueError:
            floor = Priority.LOW
        if priority.rank < floor.rank:
            return False, "below_priority_filter"

    if (
        pref.quiet_hours_enabled
        and pref.quiet_start_time is not None
        and pref.quiet_end_time is not None
        and priority is not Priority.URGENT
    ):
        local_now = now.astimezone(tz).time().replace(tzinfo=None)
        if is_quiet(local_now, pref.quiet_start_time, pref.quiet_end_time):
            return False, "quiet_hours"

    return True, "allowed"
