"""Tests for preference upserts and the delivery policy."""

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from huellitas.models.enums import Category, Priority
from huellitas.repositories.preference_repo import PreferenceRepository
from huellitas.services.delivery_policy import is_quiet, should_deliver

BOGOTA = ZoneInfo("America/Bogota")


@pytest.mark.asyncio
async def test_upsert_twice_keeps_one_row(db_session):
    repo = PreferenceRepository(db_session)
    first = await repo.upsert("user_1", "dog_1", priority_filter="low", categories={"medical": True})
    second = await repo.upsert("user_1", "dog_1", priority_filter="high", categories={"medical": False})
    await db_session.commit()

    rows = await repo.list_for_user("user_1")
    assert len(rows) == 1
    assert first.id == second.id
    assert rows[0].priority_filter == "high"
    assert rows[0].categories == {"medical": False}


@pytest.mark.asyncio
async def test_upsert_separates_dogs(db_session):
    repo = PreferenceRepository(db_session)
    await repo.upsert("user_1", "dog_1", priority_filter="low")
    await repo.upsert("user_1", "dog_2", priority_filter="low")
    assert len(await repo.list_for_user("user_1")) == 2


@pytest.mark.parametrize(
    "now,start,end,expected",
    [
        (time(23, 0), time(22, 0), time(7, 0), True),
        (time(6, 59), time(22, 0), time(7, 0), True),
        (time(7, 0), time(22, 0), time(7, 0), False),
        (time(12, 0), time(22, 0), time(7, 0), False),
        (time(13, 0), time(12, 0), time(14, 0), True),
        (time(14, 0), time(12, 0), time(14, 0), False),
        (time(10, 0), time(10, 0), time(10, 0), False),
    ],
)
def test_quiet_window(now, start, end, expected):
    assert is_quiet(now, start, end) is expected


@pytest.mark.asyncio
async def test_policy_checks_category_priority_and_quiet_hours(db_session):
    pref = await PreferenceRepository(db_session).upsert(
        "user_1", "dog_1",
        categories={"medical": True, "tips": False},
        priority_filter="medium",
        quiet_hours_enabled=True,
        quiet_start_time=time(22, 0),
        quiet_end_time=time(7, 0),
    )
    noon = datetime(2025, 3, 3, 12, 0, tzinfo=BOGOTA)
    night = datetime(2025, 3, 3, 23, 30, tzinfo=BOGOTA)

    assert should_deliver(None, Category.TIPS, Priority.LOW, noon, BOGOTA) == (True, "no_preference")
    assert should_deliver(pref, Category.TIPS, Priority.HIGH, noon, BOGOTA) == (False, "category_disabled")
    assert should_deliver(pref, Category.MEDICAL, Priority.LOW, noon, BOGOTA) == (False, "below_priority_filter")
    assert should_deliver(pref, Category.MEDICAL, Priority.HIGH, noon, BOGOTA) == (True, "allowed")
    assert should_deliver(pref, Category.MEDICAL, Priority.HIGH, night, BOGOTA) == (False, "quiet_hours")
    assert should_deliver(pref, Category.MEDICAL, Priority.URGENT, night, BOGOTA) == (True, "allowed")
    # Categories missing from the map are enabled
    assert should_deliver(pref, Category.TRANSPORT, Priority.HIGH, noon, BOGOTA) == (True, "allowed")


def test_quiet_hours_use_local_clock():
    class Pref:
        categories = None
        priority_filter = "low"
        quiet_hours_enabled = True
        quiet_start_time = time(22, 0)
        quiet_end_time = time(7, 0)

    # 08:00 UTC is 03:00 in Bogota
    now = datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc)
    assert should_deliver(Pref(), Category.GENERAL, Priority.LOW, now, BOGOTA) == (False, "quiet_hours")
    assert should_deliver(Pref(), Category.GENERAL, Priority.LOW, now, timezone.utc) == (True, "allowed")
