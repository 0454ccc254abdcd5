"""Resolve a request's store hint into concrete WooCommerce credentials."""

from pydantic import BaseModel

from woomanager.common.errors import AuthenticationError, ForbiddenError, NotFoundError, ValidationError
from woomanager.services.woocommerce.client import StoreCredentials
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import StoreRecord


class StoreConfig(BaseModel):
    """Identity hint sent by the client: inline keys or a stored reference."""

    url: str | None = None
    key: str | None = None
    secret: str | None = None
    store_id: int | None = None
    app_user_id: str | None = None

    @property
    def has_inline_credentials(self) -> bool:
        return bool(self.url and self.key and self.secret)


class CredentialResolver:
    def __init__(self, records: RecordStore) -> None:
        self.records = records

    async def resolve(self, hint: StoreConfig, caller: StoreRecord | None = None) -> StoreCredentials:
        """Inline keys are used as given; stored keys only for the caller's own store."""

        if hint.has_inline_credentials:
            return StoreCredentials(
                store_url=hint.url,
                consumer_key=hint.key,
                consumer_secret=hint.secret,
                store_id=hint.store_id,
            )

        if hint.store_id is None and not hint.app_user_id:
            raise ValidationError("config needs url/key/secret or a store reference")
        if caller is None:
            raise AuthenticationError("a bearer token is required to use stored store credentials")

        if hint.store_id is not None:
            store = await self.records.get_store(hint.store_id)
        else:
            store = await self.records.find_store_by_app_user_id(hint.app_user_id)

        if store is None:
            raise NotFoundError("store not found")
        if store.id != caller.id:
            raise ForbiddenError("store belongs to another account")
        if not store.connected:
            raise ValidationError("store is not connected yet")
        return StoreCredentials(
            store_url=store.store_url,
            consumer_key=store.consumer_key,
            consumer_secret=store.consumer_secret,
            store_id=store.id,
        )
