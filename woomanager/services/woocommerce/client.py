"""Async WooCommerce REST client.

Covers the calls the relay needs: the `wc-auth` authorization URL, webhook
create/delete, and the bulk reads behind the store-data routes. Every non-2xx
answer becomes an `UpstreamError` carrying the upstream status.
"""

from dataclasses import dataclass
from time import perf_counter
from urllib.parse import urlencode

import httpx

from woomanager.common.config import settings
from woomanager.common.errors import UpstreamError
from woomanager.common.metrics import upstream_latency_seconds, upstream_requests_total
from woomanager.services.woocommerce.urls import clean_url

API_PREFIX = "/wp-json/wc/v3"
PAGE_SIZE = 100
MAX_ORDER_PAGES = 50


@dataclass(frozen=True)
class StoreCredentials:
    """Concrete credential set for one upstream store."""

    store_url: str
    consumer_key: str
    consumer_secret: str
    store_id: int | None = None


class WooCommerceClient:
    """Thin async wrapper over the WooCommerce v3 REST API."""

    def __init__(self, timeout: float = 15.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.timeout = timeout
        self._transport = transport

    def build_authorization_url(
        self,
        store_url: str,
        app_name: str,
        user_id: str,
        return_url: str,
        callback_url: str,
        scope: str = "read_write",
    ) -> str:
        query = urlencode(
            {
                "app_name": app_name,
                "scope": scope,
                "user_id": user_id,
                "return_url": return_url,
                "callback_url": callback_url,
            }
        )
        return f"{clean_url(store_url)}/wc-auth/v1/authorize?{query}"

    async def _request(
        self,
        creds: StoreCredentials,
        method: str,
        endpoint: str,
        params: dict | None = None,
        body: dict | None = None,
    ) -> httpx.Response:
        # Query-string auth: many hosts strip the Authorization header.
        query = {
            **(params or {}),
            "consumer_key": creds.consumer_key,
            "consumer_secret": creds.consumer_secret,
        }
        url = f"{clean_url(creds.store_url)}{API_PREFIX}/{endpoint}"
        started = perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, params=query, json=body)
        except httpx.HTTPError as exc:
            upstream_requests_total.labels(
                service=settings.service_name, dependency="woocommerce", status="error"
            ).inc()
            raise UpstreamError(f"WooCommerce request failed: {exc}") from exc
        finally:
            upstream_latency_seconds.labels(service=settings.service_name, dependency="woocommerce").observe(
                max(0.0, perf_counter() - started)
            )
        upstream_requests_total.labels(
            service=settings.service_name,
            dependency="woocommerce",
            status=f"{resp.status_code // 100}xx",
        ).inc()
        if resp.status_code >= 400:
            raise UpstreamError(
                f"WooCommerce {endpoint.split('?')[0]} error {resp.status_code}: {resp.text[:300]}",
                resp.status_code,
            )
        return resp

    async def create_webhook(self, creds: StoreCredentials, name: str, topic: str, delivery_url: str) -> dict:
        resp = await self._request(
            creds,
            "POST",
            "webhooks",
            body={"name": name, "topic": topic, "delivery_url": delivery_url, "status": "active"},
        )
        return resp.json()

    async def delete_webhook(self, creds: StoreCredentials, webhook_id: str) -> None:
        await self._request(creds, "DELETE", f"webhooks/{webhook_id}", params={"force": "true"})

    async def get_orders(self, creds: StoreCredentials, per_page: int = PAGE_SIZE) -> list[dict]:
        """All orders, following `X-WP-TotalPages` up to a hard page cap."""

        orders: list[dict] = []
        page = 1
        total_pages: int | None = None
        while True:
            resp = await self._request(creds, "GET", "orders", params={"per_page": per_page, "page": page})
            batch = resp.json()
            orders.extend(batch)
            if total_pages is None:
                total_pages = int(resp.headers.get("X-WP-TotalPages") or 0)
            if not total_pages or page >= total_pages or len(batch) < per_page:
                break
            page += 1
            if page > MAX_ORDER_PAGES:
                break
        return orders

    async def ping(self, creds: StoreCredentials) -> None:
        """One single-order read; raises `UpstreamError` when the keys do not work."""

        await self._request(creds, "GET", "orders", params={"per_page": 1})

    async def get_products(self, creds: StoreCredentials) -> list[dict]:
        resp = await self._request(creds, "GET", "products", params={"per_page": PAGE_SIZE})
        return resp.json()

    async def get_customers(self, creds: StoreCredentials) -> list[dict]:
        resp = await self._request(creds, "GET", "customers", params={"per_page": PAGE_SIZE})
        return resp.json()

    async def get_sales_report(self, creds: StoreCredentials, date_min: str | None, date_max: str | None) -> dict | None:
        params = {}
        if date_min:
            params["date_min"] = date_min
        if date_max:
            params["date_max"] = date_max
        resp = await self._request(creds, "GET", "reports/sales", params=params)
        data = resp.json()
        return data[0] if isinstance(data, list) and data else None
