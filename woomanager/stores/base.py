"""Interface to the record store that owns stores, webhooks and notifications."""

from abc import ABC, abstractmethod

from woomanager.stores.schemas import NotificationEvent, StoreRecord, WebhookRegistration


class RecordStore(ABC):
    """Async record service; backends live in `baserow.py` and `sql.py`."""

    @abstractmethod
    async def create_store(self, username: str, password_hash: str, app_user_id: str) -> StoreRecord: ...

    @abstractmethod
    async def get_store(self, store_id: int) -> StoreRecord | None: ...

    @abstractmethod
    async def find_store_by_app_user_id(self, app_user_id: str) -> StoreRecord | None: ...

    @abstractmethod
    async def find_store_by_username(self, username: str) -> StoreRecord | None: ...

    @abstractmethod
    async def update_store(self, store_id: int, fields: dict) -> StoreRecord: ...

    @abstractmethod
    async def create_webhook_registration(self, registration: WebhookRegistration) -> WebhookRegistration: ...

    @abstractmethod
    async def list_webhook_registrations(self, store_id: int) -> list[WebhookRegistration]: ...

    @abstractmethod
    async def create_notification_event(self, event: NotificationEvent) -> NotificationEvent: ...

    @abstractmethod
    async def list_notification_events(self, store_id: int, limit: int = 50) -> list[NotificationEvent]: ...

    async def close(self) -> None:
        return None
