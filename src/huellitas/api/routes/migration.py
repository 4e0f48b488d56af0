"""Legacy data migration and dashboard statistics routes."""

from datetime import datetime, timezone

from fastapi import APIRouter

from huellitas.dependencies import DBSession, LocalTZ, SessionFactory
from huellitas.models.migration import MigrationAnalysis, MigrationReport, SystemStats
from huellitas.services.migrator import NotificationMigrator
from huellitas.services.stats import system_stats

router = APIRouter(tags=["Migration"])


@router.get("/migration/analysis", response_model=MigrationAnalysis)
async def analyze(session_factory: SessionFactory) -> MigrationAnalysis:
    return await NotificationMigrator(session_factory).analyze()


@router.post("/migration/run", response_model=MigrationReport)
async def run_migration(session_factory: SessionFactory, tz: LocalTZ) -> MigrationReport:
    return await NotificationMigrator(session_factory, tz=tz).run()


@router.get("/stats", response_model=SystemStats)
async def stats(db: DBSession) -> SystemStats:
    return await system_stats(db, datetime.now(timezone.utc))
