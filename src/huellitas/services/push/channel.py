"""Push delivery channel: a per-device state machine over ``DeviceCapability``.

    no_permission -> permission_requested -> permission_granted -> subscribed -> unsubscribed

A denied prompt leaves the channel at ``no_permission`` and the channel will
not prompt again for its lifetime. After ``unsubscribed`` the only way back is
``request_permission`` followed by ``subscribe``.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from huellitas.errors.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    NotSupportedError,
    PermissionDeniedError,
)
from huellitas.models.enums import PermissionResult, PushState
from huellitas.models.push import PushSubscription, RelayNotification, RelayResponse
from huellitas.services.push.device import (
    DeviceCapability,
    decode_vapid_key,
    detect_browser_name,
    detect_device_type,
)
from huellitas.services.push.guidance import denied_guidance, not_supported_guidance
from huellitas.services.push.relay import PushRelayClient
from huellitas.services.push.subscriptions import register_subscription, release_subscription

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PushChannel:
    def __init__(
        self,
        device: DeviceCapability,
        session_factory: async_sessionmaker[AsyncSession],
        relay: PushRelayClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.device = device
        self.session_factory = session_factory
        self.relay = relay
        self.clock = clock
        self._state = PushState.NO_PERMISSION
        self._denied = False
        self._endpoint: str | None = None

    @property
    def state(self) -> PushState:
        return self._state

    @property
    def browser_name(self) -> str:
        return detect_browser_name(self.device.user_agent)

    def _move(self, target: PushState) -> None:
        logger.info("Push channel %s -> %s", self._state.value, target.value)
        self._state = target

    def _require(self, allowed: tuple[PushState, ...], target: PushState) -> None:
        if self._state not in allowed:
            raise InvalidStateTransitionError("PushChannel", self._state.value, target.value)

    async def _ensure_supported(self) -> None:
        if not await self.device.is_supported():
            ua = self.device.user_agent
            raise NotSupportedError(
                "Push notifications are not supported on this device",
                not_supported_guidance(detect_browser_name(ua), detect_device_type(ua)),
            )

    async def initialize(self) -> PushState:
        """Sync the state with what the device already has."""
        await self._ensure_supported()
        permission = await self.device.current_permission()
        if permission is PermissionResult.GRANTED:
            existing = await self.device.get_subscription()
            if existing is not None:
                self._endpoint = existing.endpoint
                self._move(PushState.SUBSCRIBED)
            else:
                self._move(PushState.PERMISSION_GRANTED)
        else:
            self._denied = permission is PermissionResult.DENIED
            self._move(PushState.NO_PERMISSION)
        return self._state

    async def request_permission(self) -> PushState:
        if self._state is PushState.PERMISSION_GRANTED:
            return self._state
        self._require((PushState.NO_PERMISSION, PushState.UNSUBSCRIBED), PushState.PERMISSION_REQUESTED)
        if self._denied:
            raise PermissionDeniedError(
                "Notification permission was denied; enable it in the browser settings",
                denied_guidance(self.browser_name),
            )
        await self._ensure_supported()

        previous = self._state
        self._move(PushState.PERMISSION_REQUESTED)
        try:
            result = await self.device.request_permission()
        except Exception:
            self._move(previous)
            raise

        if result is PermissionResult.GRANTED:
            self._move(PushState.PERMISSION_GRANTED)
            return self._state

        self._move(PushState.NO_PERMISSION)
        if result is PermissionResult.DENIED:
            self._denied = True
            logger.info("Push permission denied by user")
        raise PermissionDeniedError("Notification permission was not granted", denied_guidance(self.browser_name))

    async def subscribe(self, user_id: str, vapid_public_key: str) -> PushSubscription:
        self._require((PushState.PERMISSION_GRANTED,), PushState.SUBSCRIBED)
        key = decode_vapid_key(vapid_public_key)

        stale = await self.device.get_subscription()
        if stale is not None:
            logger.info("Dropping stale device subscription before re-subscribing")
            await self.device.unsubscribe()

        device_sub = await self.device.subscribe(key)
        async with self.session_factory() as session:
            saved = await register_subscription(session, user_id, device_sub, self.device.user_agent, self.clock())
            await session.commit()

        self._endpoint = device_sub.endpoint
        self._move(PushState.SUBSCRIBED)
        return saved

    async def unsubscribe(self, user_id: str) -> PushState:
        self._require((PushState.SUBSCRIBED,), PushState.UNSUBSCRIBED)
        current = await self.device.get_subscription()
        endpoint = current.endpoint if current is not None else self._endpoint
        await self.device.unsubscribe()

        if endpoint:
            async with self.session_factory() as session:
                try:
                    await release_subscription(session, user_id, endpoint, self.clock())
                except NotFoundError:
                    logger.warning("No server-side subscription to deactivate for user %s", user_id)
                else:
                    await session.commit()

        self._endpoint = None
        self._move(PushState.UNSUBSCRIBED)
        return self._state

    async def send_test(self, user_id: str, notification: RelayNotification) -> RelayResponse:
        """Relay a test payload. ``RelayError`` propagates to the caller."""
        if self._state is not PushState.SUBSCRIBED:
            raise InvalidStateTransitionError("PushChannel", self._state.value, "send_test")
        return await self.relay.send(user_id, notification)
