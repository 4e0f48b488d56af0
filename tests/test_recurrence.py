"""Tests for recurrence rules."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from huellitas.errors.exceptions import ValidationError
from huellitas.services.recurrence import RecurrenceRule, add_months, validate_rule

BOGOTA = ZoneInfo("America/Bogota")


def test_parse_and_canonical_text():
    rule = RecurrenceRule.parse("freq=weekly;byday=fr,mo")
    assert rule.freq == "WEEKLY"
    assert rule.byday == (0, 4)
    assert str(rule) == "FREQ=WEEKLY;BYDAY=MO,FR"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "FREQ=YEARLY",
        "INTERVAL=2",
        "FREQ=DAILY;BYDAY=MO",
        "FREQ=WEEKLY;BYDAY=XX",
        "FREQ=DAILY;BYHOUR=24",
        "FREQ=DAILY;INTERVAL=0",
        "FREQ=DAILY;FREQ=WEEKLY",
        "FREQ=DAILY;COUNT=3",
        "FREQ",
    ],
)
def test_invalid_rules_rejected(text):
    with pytest.raises(ValidationError):
        RecurrenceRule.parse(text)


def test_validate_rule_passes_none_through():
    assert validate_rule(None) is None
    assert validate_rule("FREQ=DAILY;BYHOUR=7") == "FREQ=DAILY;BYHOUR=7"


def test_plain_weekly_is_exactly_seven_days():
    t = datetime(2025, 3, 5, 14, 37, 12, tzinfo=timezone.utc)
    assert RecurrenceRule.parse("FREQ=WEEKLY").next_after(t, BOGOTA) == t + timedelta(days=7)


def test_plain_daily_with_interval():
    t = datetime(2025, 3, 5, 14, 0, tzinfo=timezone.utc)
    assert RecurrenceRule.parse("FREQ=DAILY;INTERVAL=3").next_after(t, BOGOTA) == t + timedelta(days=3)


def test_plain_monthly_clamps_to_month_end():
    t = datetime(2025, 1, 31, 9, 0, tzinfo=timezone.utc)
    assert RecurrenceRule.parse("FREQ=MONTHLY").next_after(t, BOGOTA) == datetime(2025, 2, 28, 9, 0, tzinfo=timezone.utc)


def test_weekly_on_monday_local_time():
    # Monday 2025-03-03 09:00 Bogota (UTC-5)
    t = datetime(2025, 3, 3, 9, 0, tzinfo=BOGOTA)
    nxt = RecurrenceRule.parse("FREQ=WEEKLY;BYDAY=MO").next_after(t, BOGOTA)
    assert nxt == datetime(2025, 3, 10, 9, 0, tzinfo=BOGOTA)


def test_weekly_multiple_days_picks_the_nearest():
    t = datetime(2025, 3, 3, 9, 0, tzinfo=BOGOTA)  # Monday
    nxt = RecurrenceRule.parse("FREQ=WEEKLY;BYDAY=MO,TH").next_after(t, BOGOTA)
    assert nxt == datetime(2025, 3, 6, 9, 0, tzinfo=BOGOTA)


def test_daily_by_hour_anchors_to_local_clock():
    t = datetime(2025, 3, 3, 7, 0, tzinfo=BOGOTA)
    nxt = RecurrenceRule.parse("FREQ=DAILY;BYHOUR=7").next_after(t, BOGOTA)
    assert nxt == datetime(2025, 3, 4, 7, 0, tzinfo=BOGOTA)


def test_daily_by_hour_same_day_when_still_ahead():
    t = datetime(2025, 3, 3, 5, 30, tzinfo=BOGOTA)
    nxt = RecurrenceRule.parse("FREQ=DAILY;BYHOUR=7").next_after(t, BOGOTA)
    assert nxt == datetime(2025, 3, 3, 7, 0, tzinfo=BOGOTA)


def test_next_is_strictly_increasing():
    rule = RecurrenceRule.parse("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;BYHOUR=18;BYMINUTE=30")
    t = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)
    for _ in range(20):
        nxt = rule.next_after(t, BOGOTA)
        assert nxt > t
        t = nxt


def test_naive_reference_rejected():
    with pytest.raises(ValidationError):
        RecurrenceRule.parse("FREQ=DAILY").next_after(datetime(2025, 1, 1), BOGOTA)


def test_add_months_handles_negative_offsets():
    assert add_months(date(2025, 3, 31), -1) == date(2025, 2, 28)
    assert add_months(date(2025, 2, 15), -6) == date(2024, 8, 15)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
