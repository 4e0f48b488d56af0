"""FastAPI application factory and lifespan management."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from huellitas.config import settings
from huellitas.db.engine import create_db_engine, create_session_factory
from huellitas.logging_config import configure_logging

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=not settings.local_mode)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)
    session_factory = create_session_factory(engine)

    # Auto-create tables for SQLite (local dev, no Alembic migrations)
    if "sqlite" in db_url:
        from huellitas.db.base import Base
        import huellitas.db.models  # noqa: F401 (register all ORM models)
        from huellitas.services.templates import seed_default_templates

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

        async with session_factory() as seed_session:
            await seed_default_templates(seed_session)
            await seed_session.commit()

    app.state.db_engine = engine
    app.state.db_session_factory = session_factory

    # Redis is optional: it only guards the scheduler tick across instances
    app.state.redis = None
    if not settings.local_mode:
        try:
            import redis.asyncio as aioredis

            app.state.redis = aioredis.from_url(settings.redis_url, decode_responses=True)
        except ImportError:
            logger.warning("redis package not installed, scheduler runs without a cross-instance lock")

    from huellitas.dependencies import build_scheduler
    from huellitas.services.push.relay import PushRelayClient

    app.state.relay = PushRelayClient(settings.push_relay_url, timeout=settings.push_relay_timeout_seconds)
    build_scheduler(app)

    scheduler_task = None
    if settings.scheduler_enabled:
        from huellitas.workers.scheduler import run_scheduler

        scheduler_task = asyncio.create_task(run_scheduler(app))

    logger.info("Huellitas notification API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    # Shutdown
    if scheduler_task is not None:
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
    if app.state.redis:
        await app.state.redis.aclose()
    await engine.dispose()
    logger.info("Huellitas notification API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Huellitas Notification API",
        version="1.0.0",
        description="Notification pipeline for the dog daycare: templates, scheduling, push delivery and legacy migration.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from huellitas.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    from huellitas.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Prometheus metrics (internal endpoint)
    try:
        from prometheus_fastapi_instrumentator import Instrumentator
        Instrumentator(
            should_group_status_codes=True,
            should_respect_env_var=False,
            excluded_handlers=["/api/v1/health.*", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    except ImportError:
        logger.debug("prometheus-fastapi-instrumentator not installed, /metrics disabled")

    from huellitas.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
