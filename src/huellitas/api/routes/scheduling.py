"""Scheduled notification routes."""

from datetime import datetime

from fastapi import APIRouter

from huellitas.dependencies import SchedulerDep
from huellitas.models.enums import ScheduleStatus
from huellitas.models.scheduling import ScheduledNotification, ScheduleRequest, TickResult

router = APIRouter(tags=["Scheduling"])


@router.post("/scheduled-notifications", status_code=201, response_model=ScheduledNotification)
async def schedule_notification(body: ScheduleRequest, scheduler: SchedulerDep) -> ScheduledNotification:
    return await scheduler.schedule(body)


@router.get("/users/{user_id}/scheduled-notifications", response_model=list[ScheduledNotification])
async def list_scheduled(
    user_id: str,
    scheduler: SchedulerDep,
    status: ScheduleStatus | None = None,
) -> list[ScheduledNotification]:
    return await scheduler.list_for_user(user_id, status)


@router.post("/scheduled-notifications/{scheduled_id}/cancel", response_model=ScheduledNotification)
async def cancel_scheduled(scheduled_id: str, scheduler: SchedulerDep) -> ScheduledNotification:
    return await scheduler.cancel(scheduled_id)


@router.post("/scheduler/tick", response_model=TickResult)
async def run_tick(scheduler: SchedulerDep, now: datetime | None = None) -> TickResult:
    """Fire everything due now (or at ``now``, for backfills)."""
    return await scheduler.tick(now)
