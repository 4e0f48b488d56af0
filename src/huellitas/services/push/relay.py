"""HTTP client for the push relay.

The relay owns the Web Push handshake. We POST ``{userId, notification}``
and it fans out to every active subscription of that user.
"""

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from huellitas.errors.exceptions import RelayError
from huellitas.models.push import RelayNotification, RelayRequest, RelayResponse

logger = logging.getLogger(__name__)


class PushRelayClient:
    """One POST per send, bounded by ``timeout``. No retries."""

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def send(self, user_id: str, notification: RelayNotification) -> RelayResponse:
        body = RelayRequest(userId=user_id, notification=notification).model_dump(mode="json")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=body)
        except httpx.TimeoutException as exc:
            logger.warning("Push relay timed out after %.1fs for user %s", self.timeout, user_id)
            raise RelayError(f"Push relay timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Push relay unreachable at %s: %s", self.url, exc)
            raise RelayError(f"Push relay unreachable: {exc}") from exc

        if resp.status_code >= 300:
            logger.warning("Push relay answered HTTP %d for user %s", resp.status_code, user_id)
            raise RelayError(f"Push relay answered HTTP {resp.status_code}", status=resp.status_code)

        try:
            result = RelayResponse.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as exc:
            raise RelayError("Push relay returned an unreadable body", status=resp.status_code) from exc

        if not result.success:
            logger.warning("Push relay reported failure for user %s: %s", user_id, result.error)
            raise RelayError(result.error or "Push relay reported failure", status=resp.status_code)

        logger.info("Push relayed for user %s", user_id)
        return result
