"""Baserow REST backend for the record store.

Tables are addressed by id and fields by their user-facing names
(`user_field_names=true`), so the Baserow tables must use the column names of
`StoreRecord`, `WebhookRegistration` and `NotificationEvent`.
"""

import json
from time import perf_counter

import httpx

from woomanager.common.config import settings
from woomanager.common.errors import NotFoundError, UpstreamError, ValidationError
from woomanager.common.logging import logger
from woomanager.common.metrics import upstream_latency_seconds, upstream_requests_total
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import NotificationEvent, StoreRecord, WebhookRegistration


class BaserowRecordStore(RecordStore):
    """Record store over the Baserow database rows API."""

    def __init__(
        self,
        api_url: str,
        token: str,
        store_table_id: int,
        webhook_table_id: int,
        notification_table_id: int,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_url or not token:
            logger.warning("baserow_config_missing api_url_set=%s token_set=%s", bool(api_url), bool(token))
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.store_table_id = store_table_id
        self.webhook_table_id = webhook_table_id
        self.notification_table_id = notification_table_id
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, params: dict | None = None, body: dict | None = None):
        query = {"user_field_names": "true", **(params or {})}
        started = perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(
                    method,
                    f"{self.api_url}{path}",
                    params=query,
                    json=body,
                    headers={"Authorization": f"Token {self.token}"},
                )
        except httpx.HTTPError as exc:
            upstream_requests_total.labels(service=settings.service_name, dependency="baserow", status="error").inc()
            raise UpstreamError(f"Baserow request failed: {exc}") from exc
        finally:
            upstream_latency_seconds.labels(service=settings.service_name, dependency="baserow").observe(
                max(0.0, perf_counter() - started)
            )
        upstream_requests_total.labels(
            service=settings.service_name,
            dependency="baserow",
            status=f"{resp.status_code // 100}xx",
        ).inc()
        return resp

    async def _fetch(self, method: str, path: str, params: dict | None = None, body: dict | None = None) -> dict:
        resp = await self._request(method, path, params=params, body=body)
        if resp.status_code >= 400:
            raise UpstreamError(f"Baserow error {resp.status_code}: {resp.text}", resp.status_code)
        return resp.json()

    async def _find_one(self, table_id: int, field: str, value: str) -> dict | None:
        data = await self._fetch(
            "GET",
            f"/database/rows/table/{table_id}/",
            params={f"filter__{field}__equal": value, "size": "1"},
        )
        results = data.get("results") or []
        return results[0] if results else None

    async def create_store(self, username: str, password_hash: str, app_user_id: str) -> StoreRecord:
        if await self._find_one(self.store_table_id, "username", username) is not None:
            raise ValidationError("username already taken")
        row = await self._fetch(
            "POST",
            f"/database/rows/table/{self.store_table_id}/",
            body={"username": username, "password_hash": password_hash, "app_user_id": app_user_id},
        )
        return StoreRecord.model_validate(row)

    async def get_store(self, store_id: int) -> StoreRecord | None:
        resp = await self._request("GET", f"/database/rows/table/{self.store_table_id}/{store_id}/")
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise UpstreamError(f"Baserow error {resp.status_code}: {resp.text}", resp.status_code)
        return StoreRecord.model_validate(resp.json())

    async def find_store_by_app_user_id(self, app_user_id: str) -> StoreRecord | None:
        if not app_user_id:
            return None
        row = await self._find_one(self.store_table_id, "app_user_id", app_user_id)
        return StoreRecord.model_validate(row) if row else None

    async def find_store_by_username(self, username: str) -> StoreRecord | None:
        if not username:
            return None
        row = await self._find_one(self.store_table_id, "username", username)
        return StoreRecord.model_validate(row) if row else None

    async def update_store(self, store_id: int, fields: dict) -> StoreRecord:
        resp = await self._request("PATCH", f"/database/rows/table/{self.store_table_id}/{store_id}/", body=fields)
        if resp.status_code == 404:
            raise NotFoundError(f"store {store_id} not found")
        if resp.status_code >= 400:
            raise UpstreamError(f"Baserow error {resp.status_code}: {resp.text}", resp.status_code)
        return StoreRecord.model_validate(resp.json())

    async def create_webhook_registration(self, registration: WebhookRegistration) -> WebhookRegistration:
        row = await self._fetch(
            "POST",
            f"/database/rows/table/{self.webhook_table_id}/",
            body=registration.model_dump(exclude={"id"}),
        )
        return WebhookRegistration.model_validate(row)

    async def list_webhook_registrations(self, store_id: int) -> list[WebhookRegistration]:
        data = await self._fetch(
            "GET",
            f"/database/rows/table/{self.webhook_table_id}/",
            params={"filter__store_id__equal": str(store_id), "order_by": "id", "size": "200"},
        )
        return [WebhookRegistration.model_validate(row) for row in data.get("results") or []]

    async def create_notification_event(self, event: NotificationEvent) -> NotificationEvent:
        body = event.model_dump(exclude={"id", "created_at"})
        # Long-text column; the payload round-trips as a JSON string.
        body["payload"] = json.dumps(event.payload)
        row = await self._fetch("POST", f"/database/rows/table/{self.notification_table_id}/", body=body)
        return _notification_from_row(row)

    async def list_notification_events(self, store_id: int, limit: int = 50) -> list[NotificationEvent]:
        data = await self._fetch(
            "GET",
            f"/database/rows/table/{self.notification_table_id}/",
            params={"filter__store_id__equal": str(store_id), "order_by": "-id", "size": str(limit)},
        )
        return [_notification_from_row(row) for row in data.get("results") or []]


def _notification_from_row(row: dict) -> NotificationEvent:
    payload = row.get("payload")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload) if payload else {}
        except ValueError:
            payload = {"raw": payload}
    if not isinstance(payload, dict):
        payload = {"value": payload}
    return NotificationEvent.model_validate({**row, "payload": payload})
