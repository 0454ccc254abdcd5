"""Razorpay key pair attached to a store, secret sealed at rest."""

from woomanager.common import cipher
from woomanager.common.errors import ConfigurationError, ValidationError
from woomanager.common.logging import logger
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import StoreRecord


def mask_key_id(key_id: str) -> str:
    if len(key_id) <= 8:
        return "*" * len(key_id)
    return f"{key_id[:8]}{'*' * (len(key_id) - 8)}"


class SecondaryCredentialService:
    def __init__(self, records: RecordStore, key: str | None = None) -> None:
        self.records = records
        # None means "read RAZORPAY_ENC_KEY from settings at call time".
        self.key = key

    async def connect(self, store: StoreRecord, key_id: str, key_secret: str) -> StoreRecord:
        key_id = (key_id or "").strip()
        key_secret = (key_secret or "").strip()
        if not key_id or not key_secret:
            raise ValidationError("key_id and key_secret are required")
        sealed = cipher.encrypt(key_secret, self.key)
        updated = await self.records.update_store(
            store.id,
            {
                "razorpay_key_id": key_id,
                "razorpay_key_secret_enc": sealed,
                "razorpay_skipped": False,
            },
        )
        logger.info("razorpay connected store_id=%s key_id=%s", store.id, mask_key_id(key_id))
        return updated

    async def skip(self, store: StoreRecord) -> StoreRecord:
        updated = await self.records.update_store(store.id, {"razorpay_skipped": True})
        logger.info("razorpay skipped store_id=%s", store.id)
        return updated

    def reveal_secret(self, store: StoreRecord) -> str:
        """Plaintext secret; raises `IntegrityError` if the stored blob was altered."""

        if not store.razorpay_connected:
            raise ValidationError("razorpay is not connected")
        return cipher.decrypt(store.razorpay_key_secret_enc, self.key)

    def status(self, store: StoreRecord) -> dict:
        """Connection flags; a tampered secret still raises `IntegrityError`."""

        integrity = None
        if store.razorpay_connected:
            try:
                self.reveal_secret(store)
                integrity = "verified"
            except ConfigurationError:
                logger.warning("razorpay secret not verified, no cipher key store_id=%s", store.id)
                integrity = "unverified"
        return {
            "razorpay_connected": store.razorpay_connected,
            "razorpay_skipped": store.razorpay_skipped,
            "key_id": mask_key_id(store.razorpay_key_id) if store.razorpay_key_id else None,
            "integrity": integrity,
        }
