"""One-shot upgrade of legacy notification data to the classified model.

Steps run in order and each is logged:

1. backup       snapshot notifications and preferences in memory
2. notifications classify every row, set expiry, append a delivered log
3. preferences  expand legacy boolean flags into the category map
4. seed         weekly tips per dog owner, daily walk reminders per active dog
5. cleanup      expire rows older than six months that never got an expiry

A failing backup aborts the run. Row failures in step 2 are collected into
the report and never stop the loop. Failures in steps 4 and 5 are recorded
but leave the run successful. Re-running is harmless: classification is
deterministic, logs are not duplicated and pending seeds are not repeated.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from huellitas.db.models.notification import NotificationRow
from huellitas.db.models.notification_preference import NotificationPreferenceRow
from huellitas.errors.exceptions import HuellitasError, MigrationRowError
from huellitas.models.enums import Category, DeliveryStatus, Priority, ScheduleStatus
from huellitas.models.migration import (
    BackupInfo,
    BackupSnapshot,
    FailedRow,
    MigrationAnalysis,
    MigrationReport,
    MigrationSummary,
    StepOutcome,
    UserStats,
)
from huellitas.models.preferences import default_categories
from huellitas.repositories.dog_repo import DogRepository
from huellitas.repositories.notification_log_repo import NotificationLogRepository
from huellitas.repositories.notification_repo import NotificationRepository
from huellitas.repositories.preference_repo import PreferenceRepository
from huellitas.repositories.scheduled_repo import ScheduledNotificationRepository
from huellitas.repositories.template_repo import TemplateRepository
from huellitas.services.classifier import Classifier, KeywordClassifier
from huellitas.services.id_generator import generate_id
from huellitas.services.recurrence import add_months
from huellitas.services.templates import seed_default_templates

logger = logging.getLogger(__name__)

WEEKLY_TIP_TEXT = (
    "La consistencia es clave en el entrenamiento canino. "
    "Practica comandos básicos 5 minutos al día."
)
WEEKLY_TIP_RULE = "FREQ=WEEKLY;BYDAY=MO"
WALK_REMINDER_RULE = "FREQ=DAILY;BYHOUR=7"
WALK_DURATION_MINUTES = "20"
STALE_AFTER_MONTHS = 6

_EXPIRY_DAYS = {
    Category.MEDICAL: 30,
    Category.TRANSPORT: 1,
}
_DEFAULT_EXPIRY_DAYS = 7

_ROW_ERRORS = (HuellitasError, SQLAlchemyError, PydanticValidationError, ValueError)


def expiration_for(title: str | None, category: Category, created_at: datetime) -> datetime | None:
    """Tips never expire; medical lasts 30 days, transport 1, everything else 7."""
    # Raw title, case-sensitive
    if title and ("tip" in title or "consejo" in title):
        return None
    return created_at + timedelta(days=_EXPIRY_DAYS.get(category, _DEFAULT_EXPIRY_DAYS))


def next_monday_at(now: datetime, tz: tzinfo, hour: int = 9) -> datetime:
    """The coming Monday (never today) at ``hour`` local time."""
    local = now.astimezone(tz)
    days = (0 - local.weekday()) % 7 or 7
    return datetime.combine(local.date() + timedelta(days=days), time(hour), tzinfo=tz)


def tomorrow_at(now: datetime, tz: tzinfo, hour: int = 7) -> datetime:
    local = now.astimezone(tz)
    return datetime.combine(local.date() + timedelta(days=1), time(hour), tzinfo=tz)


def _row_as_dict(row) -> dict:
    return {c.key: getattr(row, c.key) for c in row.__table__.columns}


def _success_rate(successful: int, total: int) -> str:
    if not total:
        return "0.00%"
    return f"{successful / total * 100:.2f}%"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationMigrator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        classifier: Classifier | None = None,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.classifier = classifier or KeywordClassifier()
        self.tz = tz
        self.clock = clock
        self.backup: BackupSnapshot | None = None

    async def analyze(self) -> MigrationAnalysis:
        async with self.session_factory() as session:
            rows = await NotificationRepository(session).list_oldest_first()
            preferences = await PreferenceRepository(session).count()
            templates = await TemplateRepository(session).list_active()

        per_user = Counter(r.user_id for r in rows)
        return MigrationAnalysis(
            existing_notifications=len(rows),
            existing_preferences=preferences,
            available_templates=len(templates),
            oldest_notification=rows[0].created_at if rows else None,
            newest_notification=rows[-1].created_at if rows else None,
            notifications_by_type=dict(Counter(r.type or "unknown" for r in rows)),
            user_stats=UserStats(
                total_users=len(per_user),
                avg_notifications_per_user=(len(rows) / len(per_user)) if per_user else 0.0,
                max_notifications_per_user=max(per_user.values(), default=0),
            ),
        )

    async def create_backup(self) -> BackupSnapshot:
        async with self.session_factory() as session:
            notifications = await NotificationRepository(session).list_all()
            preferences = await PreferenceRepository(session).list_all()
            snapshot = BackupSnapshot(
                notifications=[_row_as_dict(r) for r in notifications],
                preferences=[_row_as_dict(r) for r in preferences],
                timestamp=self.clock(),
            )
        self.backup = snapshot
        logger.info(
            "Backup created: %d notifications, %d preferences",
            len(snapshot.notifications), len(snapshot.preferences),
        )
        return snapshot

    async def run(self) -> MigrationReport:
        now = self.clock()
        steps: list[StepOutcome] = []
        failed: list[FailedRow] = []
        successful = 0
        total = 0

        def report(success: bool) -> MigrationReport:
            backup = self.backup
            return MigrationReport(
                success=success,
                summary=MigrationSummary(
                    total=total,
                    successful=successful,
                    failed=len(failed),
                    success_rate=_success_rate(successful, total),
                ),
                backup_info=BackupInfo(
                    created=backup is not None,
                    timestamp=backup.timestamp if backup else None,
                    notifications_backed_up=len(backup.notifications) if backup else 0,
                    preferences_backed_up=len(backup.preferences) if backup else 0,
                ),
                failed_migrations=failed,
                steps=steps,
                timestamp=self.clock(),
            )

        logger.info("Migration started")
        self.backup = None
        try:
            snapshot = await self.create_backup()
        except SQLAlchemyError as exc:
            logger.error("Migration aborted: backup failed: %s", exc)
            steps.append(StepOutcome(name="backup", ok=False, error=str(exc)))
            return report(False)
        steps.append(StepOutcome(name="backup", ok=True, count=len(snapshot.notifications)))

        try:
            async with self.session_factory() as session:
                row_ids = [r.id for r in await NotificationRepository(session).list_oldest_first()]
        except SQLAlchemyError as exc:
            logger.error("Migration aborted: could not list notifications: %s", exc)
            steps.append(StepOutcome(name="notifications", ok=False, error=str(exc)))
            return report(False)

        for row_id in row_ids:
            total += 1
            try:
                await self._migrate_row(row_id, now)
                successful += 1
            except _ROW_ERRORS as exc:
                message = exc.message if isinstance(exc, HuellitasError) else str(exc)
                logger.warning("Notification %s not migrated: %s", row_id, message)
                failed.append(FailedRow(id=row_id, title=self._title_from_backup(row_id), error=message))
        steps.append(StepOutcome(name="notifications", ok=not failed, count=successful))
        logger.info("Notifications migrated: %d of %d", successful, total)

        try:
            count = await self._migrate_preferences()
        except SQLAlchemyError as exc:
            logger.error("Migration aborted: preference expansion failed: %s", exc)
            steps.append(StepOutcome(name="preferences", ok=False, error=str(exc)))
            return report(False)
        steps.append(StepOutcome(name="preferences", ok=True, count=count))
        logger.info("Preferences expanded: %d", count)

        try:
            count = await self._seed_schedules(now)
            steps.append(StepOutcome(name="seed_schedules", ok=True, count=count))
            logger.info("Scheduled notifications seeded: %d", count)
        except (HuellitasError, SQLAlchemyError) as exc:
            logger.warning("Seeding scheduled notifications failed: %s", exc)
            steps.append(StepOutcome(name="seed_schedules", ok=False, error=str(exc)))

        try:
            count = await self._expire_stale(now)
            steps.append(StepOutcome(name="cleanup", ok=True, count=count))
            logger.info("Stale notifications expired: %d", count)
        except SQLAlchemyError as exc:
            logger.warning("Post-migration cleanup failed: %s", exc)
            steps.append(StepOutcome(name="cleanup", ok=False, error=str(exc)))

        result = report(True)
        logger.info(
            "Migration finished: %d/%d rows (%s), %d failed",
            successful, total, result.summary.success_rate, len(failed),
        )
        return result

    def _title_from_backup(self, row_id: str) -> str | None:
        for item in self.backup.notifications if self.backup else ():
            if item.get("id") == row_id:
                return item.get("title")
        return None

    async def _migrate_row(self, row_id: str, now: datetime) -> None:
        async with self.session_factory() as session:
            repo = NotificationRepository(session)
            row: NotificationRow | None = await repo.get(row_id)
            if row is None:
                raise MigrationRowError(row_id, "Notification disappeared during migration")

            result = self.classifier.classify(row.title, row.message)
            data = dict(row.data or {})
            data.update(
                originalTitle=row.title,
                originalMessage=row.message,
                originalType=row.type,
                migrated=True,
                migrationDate=now.isoformat(),
            )
            await repo.update(
                row,
                category=result.category.value,
                priority=result.priority.value,
                data=data,
                sent_at=row.created_at,
                expires_at=expiration_for(row.title, result.category, row.created_at),
            )

            logs = NotificationLogRepository(session)
            if not await logs.list_for_notification(row.id):
                await logs.create(
                    log_id=generate_id("log_"),
                    notification_id=row.id,
                    user_id=row.user_id,
                    title=row.title,
                    body=row.message,
                    category=result.category.value,
                    priority=result.priority.value,
                    sent_push=True,
                    delivery_status=DeliveryStatus.DELIVERED.value,
                    delivery_confirmed=False,
                    opened_at=row.created_at if row.read else None,
                    sent_at=row.created_at,
                )
            await session.commit()

    async def _migrate_preferences(self) -> int:
        """Rows already carrying a category map keep the user's choices."""
        async with self.session_factory() as session:
            repo = PreferenceRepository(session)
            rows: list[NotificationPreferenceRow] = await repo.list_all()
            for pref in rows:
                if pref.categories:
                    merged = default_categories()
                    merged.update(pref.categories)
                    if merged != pref.categories:
                        await repo.update(pref, categories=merged)
                    continue
                categories = default_categories()
                categories[Category.MEDICAL.value] = True if pref.vaccine_reminders is None else pref.vaccine_reminders
                categories[Category.ROUTINE.value] = True if pref.routine_reminders is None else pref.routine_reminders
                await repo.update(
                    pref,
                    categories=categories,
                    priority_filter=Priority.LOW.value,
                    device_tokens=[],
                )
            await session.commit()
            return len(rows)

    async def _seed_schedules(self, now: datetime) -> int:
        created = 0
        async with self.session_factory() as session:
            await seed_default_templates(session)
            scheduled = ScheduledNotificationRepository(session)
            dogs = await DogRepository(session).list_active()

            owners = list(dict.fromkeys(d.owner_id for d in dogs))
            tip_at = next_monday_at(now, self.tz)
            for owner_id in owners:
                pending = await scheduled.list_for_user(owner_id, ScheduleStatus.PENDING.value)
                if any(p.template_key == "weekly_tip" for p in pending):
                    continue
                await scheduled.create(
                    id=generate_id("sch_"),
                    user_id=owner_id,
                    template_key="weekly_tip",
                    variables={"tip": WEEKLY_TIP_TEXT},
                    scheduled_for=tip_at,
                    is_recurring=True,
                    recurrence_rule=WEEKLY_TIP_RULE,
                    status=ScheduleStatus.PENDING.value,
                )
                created += 1

            walk_at = tomorrow_at(now, self.tz)
            for dog in dogs:
                pending = await scheduled.list_for_user(dog.owner_id, ScheduleStatus.PENDING.value)
                if any(p.template_key == "walk_reminder" and p.dog_id == dog.id for p in pending):
                    continue
                await scheduled.create(
                    id=generate_id("sch_"),
                    user_id=dog.owner_id,
                    dog_id=dog.id,
                    template_key="walk_reminder",
                    variables={"dogName": dog.name, "duration": WALK_DURATION_MINUTES},
                    scheduled_for=walk_at,
                    is_recurring=True,
                    recurrence_rule=WALK_REMINDER_RULE,
                    status=ScheduleStatus.PENDING.value,
                )
                created += 1
            await session.commit()
        return created

    async def _expire_stale(self, now: datetime) -> int:
        cutoff_day: date = add_months(now.date(), -STALE_AFTER_MONTHS)
        cutoff = now.replace(year=cutoff_day.year, month=cutoff_day.month, day=cutoff_day.day)
        async with self.session_factory() as session:
            count = await NotificationRepository(session).expire_older_than(cutoff, now)
            await session.commit()
        return count
