"""Operator signup/login; a signup creates the store record."""

from uuid import uuid4

import bcrypt

from woomanager.common.errors import AuthenticationError, ValidationError
from woomanager.common.logging import logger
from woomanager.services.auth.tokens import TokenService
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import StoreRecord


class AuthService:
    def __init__(self, records: RecordStore, tokens: TokenService, bcrypt_rounds: int = 12) -> None:
        self.records = records
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def _session(self, store: StoreRecord) -> dict:
        return {
            "token": self.tokens.create_access_token(store.id, store.app_user_id),
            "user": store.public_view(),
        }

    async def signup(self, username: str, password: str) -> dict:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("username and password are required")
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds))
        # Correlation handles must never contain the token separator; hex uuids cannot.
        store = await self.records.create_store(username, password_hash.decode("utf-8"), uuid4().hex)
        logger.info("operator signed up store_id=%s", store.id)
        return self._session(store)

    async def login(self, username: str, password: str) -> dict:
        store = await self.records.find_store_by_username((username or "").strip())
        if store is None or not store.password_hash:
            raise AuthenticationError("invalid username or password")
        if not bcrypt.checkpw(password.encode("utf-8"), store.password_hash.encode("utf-8")):
            raise AuthenticationError("invalid username or password")
        return self._session(store)

    async def store_for_token(self, token: str) -> StoreRecord:
        store_id = self.tokens.store_id_from_token(token)
        store = await self.records.get_store(store_id)
        if store is None:
            raise AuthenticationError("token refers to an unknown store")
        return store
