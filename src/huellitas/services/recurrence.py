"""Recurrence rules for scheduled notifications.

A rule is a ``;``-separated list of ``KEY=VALUE`` parts::

    FREQ=DAILY|WEEKLY|MONTHLY   required
    INTERVAL=<n>                optional, default 1
    BYDAY=MO,WE,FR              optional, WEEKLY only
    BYHOUR=<0-23>               optional
    BYMINUTE=<0-59>             optional

Without anchors (no BYDAY/BYHOUR/BYMINUTE) the next occurrence is plain
arithmetic on the previous one: +1 day, +7 days or the same day next month
(clamped to the month's length). With anchors the rule is evaluated on the
local wall clock. ``next_after`` is always strictly greater than its input.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from huellitas.errors.exceptions import ValidationError

FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY")
WEEKDAYS = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")


def add_months(day: date, months: int) -> date:
    """Same day ``months`` later, clamped to the last day of the target month."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last))


def _int_part(key: str, raw: str, low: int, high: int) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an integer", {"rule_part": key, "value": raw}) from None
    if not low <= value <= high:
        raise ValidationError(f"{key} must be between {low} and {high}", {"rule_part": key, "value": raw})
    return value


@dataclass(frozen=True)
class RecurrenceRule:
    freq: str
    interval: int = 1
    byday: tuple[int, ...] = ()
    byhour: int | None = None
    byminute: int | None = None

    @classmethod
    def parse(cls, text: str) -> "RecurrenceRule":
        if not text or not text.strip():
            raise ValidationError("Recurrence rule is empty")

        parts: dict[str, str] = {}
        for chunk in text.strip().split(";"):
            if not chunk:
                continue
            key, sep, value = chunk.partition("=")
            key = key.strip().upper()
            if not sep or not value.strip():
                raise ValidationError(f"Malformed recurrence rule part '{chunk}'", {"rule": text})
            if key in parts:
                raise ValidationError(f"Duplicate recurrence rule part '{key}'", {"rule": text})
            parts[key] = value.strip().upper()

        unknown = set(parts) - {"FREQ", "INTERVAL", "BYDAY", "BYHOUR", "BYMINUTE"}
        if unknown:
            raise ValidationError(f"Unsupported recurrence rule parts: {sorted(unknown)}", {"rule": text})

        freq = parts.get("FREQ")
        if freq not in FREQUENCIES:
            raise ValidationError(f"FREQ must be one of {list(FREQUENCIES)}", {"rule": text})

        byday: tuple[int, ...] = ()
        if "BYDAY" in parts:
            if freq != "WEEKLY":
                raise ValidationError("BYDAY is only valid with FREQ=WEEKLY", {"rule": text})
            days = set()
            for name in parts["BYDAY"].split(","):
                name = name.strip()
                if name not in WEEKDAYS:
                    raise ValidationError(f"Unknown weekday '{name}'", {"rule": text})
                days.add(WEEKDAYS.index(name))
            byday = tuple(sorted(days))

        return cls(
            freq=freq,
            interval=_int_part("INTERVAL", parts["INTERVAL"], 1, 1000) if "INTERVAL" in parts else 1,
            byday=byday,
            byhour=_int_part("BYHOUR", parts["BYHOUR"], 0, 23) if "BYHOUR" in parts else None,
            byminute=_int_part("BYMINUTE", parts["BYMINUTE"], 0, 59) if "BYMINUTE" in parts else None,
        )

    def __str__(self) -> str:
        out = [f"FREQ={self.freq}"]
        if self.interval != 1:
            out.append(f"INTERVAL={self.interval}")
        if self.byday:
            out.append("BYDAY=" + ",".join(WEEKDAYS[d] for d in self.byday))
        if self.byhour is not None:
            out.append(f"BYHOUR={self.byhour}")
        if self.byminute is not None:
            out.append(f"BYMINUTE={self.byminute}")
        return ";".join(out)

    @property
    def anchored(self) -> bool:
        return bool(self.byday) or self.byhour is not None or self.byminute is not None

    def next_after(self, previous: datetime, tz: tzinfo) -> datetime:
        """Next fire time strictly after ``previous`` (which must be aware)."""
        if previous.tzinfo is None:
            raise ValidationError("Recurrence needs a timezone-aware reference time")

        if not self.anchored:
            if self.freq == "DAILY":
                return previous + timedelta(days=self.interval)
            if self.freq == "WEEKLY":
                return previous + timedelta(weeks=self.interval)
            moved = add_months(previous.date(), self.interval)
            return previous.replace(year=moved.year, month=moved.month, day=moved.day)

        local = previous.astimezone(tz)
        if self.byhour is not None:
            at = time(self.byhour, self.byminute or 0)
        elif self.byminute is not None:
            at = time(local.hour, self.byminute)
        else:
            at = local.time().replace(tzinfo=None)

        def on(day: date) -> datetime:
            return datetime.combine(day, at, tzinfo=tz)

        if self.freq == "DAILY":
            candidate = on(local.date())
            if candidate <= previous:
                candidate = on(local.date() + timedelta(days=self.interval))
            return candidate

        if self.freq == "WEEKLY":
            weekdays = self.byday or (local.weekday(),)
            week_start = local.date() - timedelta(days=local.weekday())
            for offset in range(0, 7 * (self.interval + 1) + 1):
                day = local.date() + timedelta(days=offset)
                if ((day - week_start).days // 7) % self.interval:
                    continue
                if day.weekday() in weekdays and on(day) > previous:
                    return on(day)
            raise AssertionError("weekly recurrence search exhausted")  # unreachable

        candidate = on(local.date())
        if candidate <= previous:
            candidate = on(add_months(local.date(), self.interval))
        return candidate


def validate_rule(text: str | None) -> str | None:
    """Normalize a rule to its canonical text; None stays None."""
    if text is None:
        return None
    return str(RecurrenceRule.parse(text))
