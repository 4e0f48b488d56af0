"""Push subscription routes.

The browser runs the permission prompt and ``pushManager.subscribe`` itself;
these endpoints record the outcome and let the UI fire a test push.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from huellitas.dependencies import DBSession, Relay
from huellitas.models.push import (
    DeviceSubscription,
    PushSubscription,
    PushTestRequest,
    RelayResponse,
    SubscriptionRegister,
    SubscriptionRelease,
)
from huellitas.services.push.subscriptions import register_subscription, release_subscription

router = APIRouter(tags=["Push"])


@router.post("/push/subscriptions", status_code=201, response_model=PushSubscription)
async def subscribe(body: SubscriptionRegister, db: DBSession) -> PushSubscription:
    device = DeviceSubscription(endpoint=body.endpoint, p256dh=body.p256dh_key, auth=body.auth_key)
    saved = await register_subscription(db, body.user_id, device, body.user_agent, datetime.now(timezone.utc))
    await db.commit()
    return saved


@router.post("/push/subscriptions/unsubscribe", response_model=PushSubscription)
async def unsubscribe(body: SubscriptionRelease, db: DBSession) -> PushSubscription:
    released = await release_subscription(db, body.user_id, body.endpoint, datetime.now(timezone.utc))
    await db.commit()
    return released


@router.post("/push/test", response_model=RelayResponse)
async def send_test_push(body: PushTestRequest, relay: Relay) -> RelayResponse:
    """RelayError surfaces as 502 so the UI can tell the user push is not working."""
    return await relay.send(body.user_id, body.notification)
