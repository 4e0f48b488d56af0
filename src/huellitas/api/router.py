"""Master API router mounted at /api/v1."""

from fastapi import APIRouter

from huellitas.api.routes import (
    health,
    migration,
    notifications,
    preferences,
    push,
    scheduling,
    templates,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(templates.router)
api_router.include_router(notifications.router)
api_router.include_router(scheduling.router)
api_router.include_router(preferences.router)
api_router.include_router(push.router)
api_router.include_router(migration.router)
