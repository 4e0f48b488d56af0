"""The device-side push capability, seen from the channel.

In a browser this is ``Notification.requestPermission`` plus
``registration.pushManager``. Anything implementing ``DeviceCapability`` can
drive a ``PushChannel``.
"""

import base64
import binascii
import re
from typing import Protocol

from huellitas.errors.exceptions import ValidationError
from huellitas.models.enums import DeviceType, PermissionResult
from huellitas.models.push import DeviceSubscription

# Uncompressed P-256 point: 0x04 || X || Y
VAPID_KEY_LENGTH = 65

_TABLET_RE = re.compile(r"tablet|ipad", re.IGNORECASE)
_MOBILE_RE = re.compile(r"mobile|iphone|android", re.IGNORECASE)


class DeviceCapability(Protocol):
    @property
    def user_agent(self) -> str: ...

    async def is_supported(self) -> bool: ...

    async def current_permission(self) -> PermissionResult: ...

    async def request_permission(self) -> PermissionResult: ...

    async def subscribe(self, application_server_key: bytes) -> DeviceSubscription: ...

    async def get_subscription(self) -> DeviceSubscription | None: ...

    async def unsubscribe(self) -> bool: ...


def detect_device_type(user_agent: str | None) -> DeviceType:
    ua = user_agent or ""
    if _TABLET_RE.search(ua):
        return DeviceType.TABLET
    if _MOBILE_RE.search(ua):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP


def detect_browser_name(user_agent: str | None) -> str:
    # Edge and Chrome both advertise "Chrome"; Chrome and Safari both advertise "Safari"
    ua = user_agent or ""
    if "Edg" in ua:
        return "Edge"
    if "Firefox" in ua or "FxiOS" in ua:
        return "Firefox"
    if "Chrome" in ua or "CriOS" in ua:
        return "Chrome"
    if "Safari" in ua:
        return "Safari"
    return "Unknown"


def decode_vapid_key(key: str) -> bytes:
    """Decode a url-safe base64 VAPID public key, repairing missing padding."""
    cleaned = (key or "").strip()
    if not cleaned:
        raise ValidationError("VAPID public key is not configured")
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_"))
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("VAPID public key is not valid base64", {"reason": str(exc)}) from exc
    if len(raw) != VAPID_KEY_LENGTH:
        raise ValidationError(
            f"VAPID public key must decode to {VAPID_KEY_LENGTH} bytes",
            {"decoded_length": len(raw)},
        )
    return raw
