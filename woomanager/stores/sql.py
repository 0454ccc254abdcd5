"""SQLAlchemy-backed record store used for local development and tests."""

from sqlalchemy import select

from woomanager.common.errors import NotFoundError, ValidationError
from woomanager.stores.base import RecordStore
from woomanager.stores.models import NotificationEventRow, StoreRow, WebhookRegistrationRow
from woomanager.stores.schemas import NotificationEvent, StoreRecord, WebhookRegistration

STORE_MUTABLE_FIELDS = {
    "store_url",
    "consumer_key",
    "consumer_secret",
    "woo_key_id",
    "razorpay_key_id",
    "razorpay_key_secret_enc",
    "razorpay_skipped",
}


class SqlRecordStore(RecordStore):
    """Record store over a SQLAlchemy session factory."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    async def create_store(self, username: str, password_hash: str, app_user_id: str) -> StoreRecord:
        with self.session_factory() as db:
            taken = db.execute(select(StoreRow).where(StoreRow.username == username)).scalar_one_or_none()
            if taken is not None:
                raise ValidationError("username already taken")
            row = StoreRow(username=username, password_hash=password_hash, app_user_id=app_user_id)
            db.add(row)
            db.commit()
            return StoreRecord.model_validate(row)

    async def get_store(self, store_id: int) -> StoreRecord | None:
        with self.session_factory() as db:
            row = db.get(StoreRow, store_id)
            return StoreRecord.model_validate(row) if row else None

    async def find_store_by_app_user_id(self, app_user_id: str) -> StoreRecord | None:
        if not app_user_id:
            return None
        with self.session_factory() as db:
            row = db.execute(select(StoreRow).where(StoreRow.app_user_id == app_user_id)).scalar_one_or_none()
            return StoreRecord.model_validate(row) if row else None

    async def find_store_by_username(self, username: str) -> StoreRecord | None:
        if not username:
            return None
        with self.session_factory() as db:
            row = db.execute(select(StoreRow).where(StoreRow.username == username)).scalar_one_or_none()
            return StoreRecord.model_validate(row) if row else None

    async def update_store(self, store_id: int, fields: dict) -> StoreRecord:
        unknown = set(fields) - STORE_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not writable: {sorted(unknown)}")
        with self.session_factory() as db:
            row = db.get(StoreRow, store_id)
            if row is None:
                raise NotFoundError(f"store {store_id} not found")
            for name, value in fields.items():
                setattr(row, name, value)
            db.commit()
            return StoreRecord.model_validate(row)

    async def create_webhook_registration(self, registration: WebhookRegistration) -> WebhookRegistration:
        with self.session_factory() as db:
            row = WebhookRegistrationRow(**registration.model_dump(exclude={"id"}))
            db.add(row)
            db.commit()
            return WebhookRegistration.model_validate(row)

    async def list_webhook_registrations(self, store_id: int) -> list[WebhookRegistration]:
        with self.session_factory() as db:
            rows = db.execute(
                select(WebhookRegistrationRow)
                .where(WebhookRegistrationRow.store_id == store_id)
                .order_by(WebhookRegistrationRow.id)
            ).scalars()
            return [WebhookRegistration.model_validate(row) for row in rows]

    async def create_notification_event(self, event: NotificationEvent) -> NotificationEvent:
        with self.session_factory() as db:
            row = NotificationEventRow(**event.model_dump(exclude={"id", "created_at"}))
            db.add(row)
            db.commit()
            return NotificationEvent.model_validate(row)

    async def list_notification_events(self, store_id: int, limit: int = 50) -> list[NotificationEvent]:
        with self.session_factory() as db:
            rows = db.execute(
                select(NotificationEventRow)
                .where(NotificationEventRow.store_id == store_id)
                .order_by(NotificationEventRow.id.desc())
                .limit(limit)
            ).scalars()
            return [NotificationEvent.model_validate(row) for row in rows]
