"""Tests for the scheduler state machine and recurring chains."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from huellitas.errors.exceptions import InvalidStateTransitionError, NotFoundError, TemplateNotFoundError, ValidationError
from huellitas.models.enums import ScheduleStatus
from huellitas.models.scheduling import ScheduleRequest
from huellitas.repositories.notification_repo import NotificationRepository
from huellitas.repositories.scheduled_repo import ScheduledNotificationRepository
from huellitas.repositories.template_repo import TemplateRepository
from huellitas.services.scheduler import Scheduler

T = datetime(2025, 3, 3, 14, 0, tzinfo=timezone.utc)


def _request(**overrides) -> ScheduleRequest:
    fields = {
        "user_id": "user_1",
        "dog_id": "dog_1",
        "template_key": "walk_reminder",
        "variables": {"dogName": "Luna", "duration": "20"},
        "scheduled_for": T,
    }
    fields.update(overrides)
    return ScheduleRequest(**fields)


@pytest.fixture
def scheduler(session_factory):
    return Scheduler(session_factory, clock=lambda: T)


@pytest.mark.asyncio
async def test_schedule_creates_pending_entry(scheduler):
    entry = await scheduler.schedule(_request())
    assert entry.id.startswith("sch_")
    assert entry.status is ScheduleStatus.PENDING
    assert entry.is_recurring is False
    assert entry.recurrence_rule is None


@pytest.mark.asyncio
async def test_schedule_unknown_template_fails(scheduler):
    with pytest.raises(TemplateNotFoundError):
        await scheduler.schedule(_request(template_key="missing"))


@pytest.mark.asyncio
async def test_schedule_rejects_malformed_rule(scheduler):
    with pytest.raises(ValidationError):
        await scheduler.schedule(_request(recurrence_rule="FREQ=HOURLY"))


@pytest.mark.asyncio
async def test_past_one_shot_fires_on_next_tick(scheduler, session_factory):
    entry = await scheduler.schedule(_request(scheduled_for=T - timedelta(days=2)))

    result = await scheduler.tick(T)
    assert result.processed == 1
    assert result.sent == 1
    assert result.rescheduled == 0
    assert result.sent_ids == [entry.id]

    async with session_factory() as session:
        row = await ScheduledNotificationRepository(session).get(entry.id)
        assert row.status == "sent"
        assert row.notification_id is not None
        notification = await NotificationRepository(session).get(row.notification_id)
        assert "Luna" in notification.title
        assert notification.category == "routine"


@pytest.mark.asyncio
async def test_future_entry_is_not_fired(scheduler):
    await scheduler.schedule(_request(scheduled_for=T + timedelta(hours=1)))
    result = await scheduler.tick(T)
    assert result.processed == 0


@pytest.mark.asyncio
async def test_weekly_recurrence_creates_next_instance_seven_days_later(scheduler, session_factory):
    entry = await scheduler.schedule(_request(recurrence_rule="FREQ=WEEKLY"))
    result = await scheduler.tick(T)
    assert result.rescheduled == 1

    pending = await scheduler.list_for_user("user_1", ScheduleStatus.PENDING)
    assert len(pending) == 1
    child = pending[0]
    assert child.scheduled_for == T + timedelta(days=7)
    assert child.parent_id == entry.id
    assert child.recurrence_rule == "FREQ=WEEKLY"
    assert child.variables == {"dogName": "Luna", "duration": "20"}

    async with session_factory() as session:
        fired = await ScheduledNotificationRepository(session).get(entry.id)
        assert fired.status == "sent"
        assert fired.recurrence_rule == "FREQ=WEEKLY"


@pytest.mark.asyncio
async def test_failed_fire_is_marked_failed_without_next_instance(scheduler, session_factory):
    entry = await scheduler.schedule(_request(recurrence_rule="FREQ=DAILY"))
    async with session_factory() as session:
        repo = TemplateRepository(session)
        await repo.update(await repo.get("walk_reminder"), is_active=False)
        await session.commit()

    result = await scheduler.tick(T)
    assert result.failed == 1
    assert result.failed_ids == [entry.id]

    entries = await scheduler.list_for_user("user_1")
    assert len(entries) == 1
    assert entries[0].status is ScheduleStatus.FAILED
    assert "walk_reminder" in entries[0].error

    # Failed entries are not retried
    assert (await scheduler.tick(T + timedelta(days=1))).processed == 0


@pytest.mark.asyncio
async def test_cancel_pending_entry(scheduler):
    entry = await scheduler.schedule(_request(scheduled_for=T + timedelta(days=1)))
    cancelled = await scheduler.cancel(entry.id)
    assert cancelled.status is ScheduleStatus.CANCELLED
    assert (await scheduler.tick(T + timedelta(days=2))).processed == 0


@pytest.mark.asyncio
async def test_cancel_sent_entry_is_rejected_and_state_kept(scheduler):
    entry = await scheduler.schedule(_request())
    await scheduler.tick(T)

    with pytest.raises(InvalidStateTransitionError) as exc_info:
        await scheduler.cancel(entry.id)
    assert exc_info.value.current == "sent"

    entries = await scheduler.list_for_user("user_1")
    assert entries[0].status is ScheduleStatus.SENT


@pytest.mark.asyncio
async def test_cancel_unknown_entry(scheduler):
    with pytest.raises(NotFoundError):
        await scheduler.cancel("sch_missing")


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped(scheduler):
    await scheduler._lock.acquire()
    try:
        result = await scheduler.tick(T)
    finally:
        scheduler._lock.release()
    assert result.skipped is True
    assert result.processed == 0


@pytest.mark.asyncio
async def test_concurrent_ticks_fire_each_entry_once(scheduler, session_factory):
    await scheduler.schedule(_request())
    results = await asyncio.gather(scheduler.tick(T), scheduler.tick(T))
    assert sum(r.sent for r in results) == 1
    async with session_factory() as session:
        assert await NotificationRepository(session).count() == 1


class FakeRedis:
    """SET NX plus the compare-and-delete release script."""

    def __init__(self, held: bool = False, expire_during_tick: bool = False):
        self.keys: dict[str, str] = {"huellitas:scheduler:tick": "other-instance"} if held else {}
        self.deleted: list[str] = []
        self.expire_during_tick = expire_during_tick

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.keys:
            return None
        # The TTL lapses and another instance takes the key
        self.keys[key] = "other-instance" if self.expire_during_tick else value
        return True

    async def eval(self, script, numkeys, key, token):
        if self.keys.get(key) != token:
            return 0
        self.deleted.append(key)
        del self.keys[key]
        return 1


@pytest.mark.asyncio
async def test_worker_tick_takes_and_releases_redis_lock(app):
    from huellitas.dependencies import build_scheduler
    from huellitas.workers.scheduler import tick_once

    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    await build_scheduler(app).schedule(_request(scheduled_for=past, dog_id=None))

    redis = FakeRedis()
    assert await tick_once(app, redis) == 1
    assert redis.deleted == ["huellitas:scheduler:tick"]
    assert redis.keys == {}


@pytest.mark.asyncio
async def test_worker_tick_skipped_when_another_instance_holds_lock(app):
    from huellitas.dependencies import build_scheduler
    from huellitas.workers.scheduler import tick_once

    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    await build_scheduler(app).schedule(_request(scheduled_for=past, dog_id=None))

    redis = FakeRedis(held=True)
    assert await tick_once(app, redis) == 0
    assert redis.deleted == []


@pytest.mark.asyncio
async def test_worker_tick_keeps_lock_taken_over_by_another_instance(app):
    from huellitas.dependencies import build_scheduler
    from huellitas.workers.scheduler import tick_once

    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    await build_scheduler(app).schedule(_request(scheduled_for=past, dog_id=None))

    redis = FakeRedis(expire_during_tick=True)
    assert await tick_once(app, redis) == 1
    assert redis.deleted == []
    assert redis.keys == {"huellitas:scheduler:tick": "other-instance"}


@pytest.mark.asyncio
async def test_tick_rejects_time_without_offset(scheduler):
    with pytest.raises(ValidationError, match="timezone offset"):
        await scheduler.tick(datetime(2030, 1, 1))
    assert not scheduler.busy


@pytest.mark.asyncio
async def test_worker_purges_long_expired_notifications(app, session_factory):
    from huellitas.models.notification import DirectNotificationCreate
    from huellitas.services.notification_store import NotificationStore
    from huellitas.workers.scheduler import purge_expired

    created_at = datetime.now(timezone.utc) - timedelta(days=45)
    async with session_factory() as session:
        store = NotificationStore(session, clock=lambda: created_at)
        stale = await store.create_direct(DirectNotificationCreate(
            user_id="user_1", title="Transporte", message="Llegó", expires_at=created_at + timedelta(days=1),
        ))
        await session.commit()

    assert await purge_expired(app) == 1
    async with session_factory() as session:
        assert await NotificationRepository(session).get(stale.id) is None
