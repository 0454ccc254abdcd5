"""Record shapes exchanged with the external record store."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Baserow returns null for blank text/boolean cells; fall back to field defaults.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class StoreRecord(_Record):
    """One operator account and the store it is connected to."""

    id: int
    username: str = ""
    password_hash: str = ""
    app_user_id: str
    store_url: str = ""
    consumer_key: str = ""
    consumer_secret: str = ""
    woo_key_id: str = ""
    razorpay_key_id: str = ""
    razorpay_key_secret_enc: str = ""
    razorpay_skipped: bool = False

    @property
    def connected(self) -> bool:
        return bool(self.consumer_key and self.consumer_secret)

    @property
    def razorpay_connected(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret_enc)

    def public_view(self) -> dict:
        """Fields safe to hand back to the client (no keys, no hashes)."""

        return {
            "store_id": self.id,
            "username": self.username,
            "app_user_id": self.app_user_id,
            "store_url": self.store_url,
            "connected": self.connected,
            "razorpay_connected": self.razorpay_connected,
            "razorpay_skipped": self.razorpay_skipped,
        }


class WebhookRegistration(_Record):
    """An upstream webhook subscription created during provisioning."""

    id: int | None = None
    store_id: int
    webhook_id: str
    topic: str
    delivery_url: str
    status: str = "active"


class NotificationEvent(_Record):
    """Append-only history row for one inbound store event."""

    id: int | None = None
    store_id: int
    topic: str = ""
    resource: str = ""
    event: str = ""
    payload: dict[str, Any] = {}
    created_at: datetime | None = None
