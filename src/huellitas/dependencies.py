"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from huellitas.config import settings
from huellitas.services.delivery import DeliveryService
from huellitas.services.push.relay import PushRelayClient
from huellitas.services.scheduler import Scheduler


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.db_session_factory


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


def get_local_tz() -> ZoneInfo:
    return ZoneInfo(settings.local_timezone)


def get_relay(request: Request) -> PushRelayClient:
    relay = getattr(request.app.state, "relay", None)
    if relay is None:
        relay = PushRelayClient(settings.push_relay_url, timeout=settings.push_relay_timeout_seconds)
        request.app.state.relay = relay
    return relay


def build_scheduler(app) -> Scheduler:
    """One scheduler per app so ticks from the API and the worker share a lock."""
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is None:
        tz = get_local_tz()

        def delivery(session: AsyncSession) -> DeliveryService:
            relay = getattr(app.state, "relay", None) or PushRelayClient(
                settings.push_relay_url, timeout=settings.push_relay_timeout_seconds
            )
            return DeliveryService(session, relay, tz, icon=settings.notification_icon)

        scheduler = Scheduler(app.state.db_session_factory, tz=tz, delivery=delivery)
        app.state.scheduler = scheduler
    return scheduler


def get_scheduler(request: Request) -> Scheduler:
    return build_scheduler(request.app)


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker, Depends(get_session_factory)]
TraceId = Annotated[str, Depends(get_trace_id)]
LocalTZ = Annotated[ZoneInfo, Depends(get_local_tz)]
Relay = Annotated[PushRelayClient, Depends(get_relay)]
SchedulerDep = Annotated[Scheduler, Depends(get_scheduler)]
