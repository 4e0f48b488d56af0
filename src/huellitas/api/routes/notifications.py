"""Notification routes: the template pipeline, direct inserts and the inbox."""

from fastapi import APIRouter, Query, Response

from huellitas.config import settings
from huellitas.dependencies import DBSession, LocalTZ, Relay
from huellitas.models.notification import (
    DirectNotificationCreate,
    Notification,
    NotificationCreate,
    NotificationList,
)
from huellitas.services.delivery import DeliveryService
from huellitas.services.notification_store import NotificationStore

router = APIRouter(tags=["Notifications"])


async def _push(db, relay, tz, notification: Notification) -> None:
    await DeliveryService(db, relay, tz, icon=settings.notification_icon).dispatch(notification)
    await db.commit()


@router.post("/notifications", status_code=201, response_model=Notification)
async def create_notification(
    body: NotificationCreate,
    db: DBSession,
    relay: Relay,
    tz: LocalTZ,
    push: bool = Query(True, description="Relay to the user's devices after storing"),
) -> Notification:
    notification = await NotificationStore(db).create(body)
    await db.commit()
    if push:
        await _push(db, relay, tz, notification)
    return notification


@router.post("/notifications/direct", status_code=201, response_model=Notification)
async def create_direct_notification(
    body: DirectNotificationCreate,
    db: DBSession,
    relay: Relay,
    tz: LocalTZ,
    push: bool = Query(True, description="Relay to the user's devices after storing"),
) -> Notification:
    notification = await NotificationStore(db).create_direct(body)
    await db.commit()
    if push:
        await _push(db, relay, tz, notification)
    return notification


@router.get("/users/{user_id}/notifications", response_model=NotificationList)
async def list_notifications(
    user_id: str,
    db: DBSession,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
) -> NotificationList:
    return await NotificationStore(db).list(user_id, limit=limit, offset=offset, unread_only=unread_only)


@router.get("/notifications/{notification_id}", response_model=Notification)
async def get_notification(notification_id: str, db: DBSession) -> Notification:
    return await NotificationStore(db).get(notification_id)


@router.patch("/notifications/{notification_id}/read", response_model=Notification)
async def mark_notification_read(notification_id: str, db: DBSession) -> Notification:
    notification = await NotificationStore(db).mark_read(notification_id)
    await db.commit()
    return notification


@router.post("/users/{user_id}/notifications/mark-all-read")
async def mark_all_read(user_id: str, db: DBSession) -> dict:
    marked = await NotificationStore(db).mark_all_read(user_id)
    await db.commit()
    return {"user_id": user_id, "marked": marked}


@router.delete("/notifications/{notification_id}", status_code=204)
async def delete_notification(notification_id: str, db: DBSession) -> Response:
    await NotificationStore(db).delete(notification_id)
    await db.commit()
    return Response(status_code=204)


@router.post("/maintenance/purge-expired")
async def purge_expired_notifications(db: DBSession) -> dict:
    """Delete notifications whose expiry passed more than 30 days ago."""
    deleted = await NotificationStore(db).purge_expired()
    await db.commit()
    return {"deleted": deleted}
