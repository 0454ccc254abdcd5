"""Web Push delivery with VAPID signing."""

import asyncio
import json

from pywebpush import WebPushException, webpush

from woomanager.common.errors import ConfigurationError

PERMANENT_REJECTION_CODES = frozenset({404, 410})


class PushDeliveryError(Exception):
    """A push service refused or failed one delivery."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def permanent(self) -> bool:
        return self.status_code in PERMANENT_REJECTION_CODES


class WebPushSender:
    """Sends one JSON payload to one browser subscription."""

    def __init__(
        self,
        public_key: str,
        private_key: str,
        contact: str,
        ttl_seconds: int = 3600,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.public_key = public_key
        self.private_key = private_key
        self.contact = contact
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    def require_public_key(self) -> str:
        if not self.configured:
            raise ConfigurationError("VAPID keys are not configured")
        return self.public_key

    def _send_sync(self, subscription: dict, payload: dict) -> int:
        try:
            resp = webpush(
                subscription_info=subscription,
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                # pywebpush fills in `aud`/`exp`, so every call gets a fresh dict.
                vapid_claims={"sub": self.contact},
                ttl=self.ttl_seconds,
                timeout=self.timeout_seconds,
            )
        except WebPushException as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise PushDeliveryError(str(exc), status) from exc
        return resp.status_code

    async def send(self, subscription: dict, payload: dict) -> int:
        if not self.configured:
            raise ConfigurationError("VAPID keys are not configured")
        # pywebpush is blocking (requests); keep it off the event loop.
        return await asyncio.to_thread(self._send_sync, subscription, payload)
