"""Pydantic records returned by the legacy-data migrator."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class MigrationSummary(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    success_rate: str = "0.00%"


class BackupInfo(BaseModel):
    created: bool = False
    timestamp: datetime | None = None
    notifications_backed_up: int = 0
    preferences_backed_up: int = 0


class FailedRow(BaseModel):
    id: str
    title: str | None = None
    error: str


class StepOutcome(BaseModel):
    name: str
    ok: bool
    count: int = 0
    error: str | None = None


class MigrationReport(BaseModel):
    success: bool
    summary: MigrationSummary
    backup_info: BackupInfo
    failed_migrations: list[FailedRow] = Field(default_factory=list)
    steps: list[StepOutcome] = Field(default_factory=list)
    timestamp: datetime


class UserStats(BaseModel):
    total_users: int = 0
    avg_notifications_per_user: float = 0.0
    max_notifications_per_user: int = 0


class MigrationAnalysis(BaseModel):
    existing_notifications: int
    existing_preferences: int
    available_templates: int
    oldest_notification: datetime | None = None
    newest_notification: datetime | None = None
    notifications_by_type: dict[str, int] = Field(default_factory=dict)
    user_stats: UserStats


class SystemStats(BaseModel):
    recent_notifications: int
    available_templates: int
    pending_scheduled: int
    is_migrated: bool
    notifications_by_category: dict[str, int]
    notifications_by_priority: dict[str, int]
    templates_by_category: dict[str, int]


class BackupSnapshot(BaseModel):
    """In-memory copy of legacy rows taken before any write."""

    notifications: list[dict[str, Any]] = Field(default_factory=list)
    preferences: list[dict[str, Any]] = Field(default_factory=list)
    timestamp: datetime | None = None
    version: str = "1.0"
