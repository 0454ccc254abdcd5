"""Cached, mapped reads of a store's orders, products, customers and sales."""

import asyncio
from datetime import datetime, timedelta, timezone

from woomanager.services.credentials.resolver import CredentialResolver, StoreConfig
from woomanager.services.store_data.cache import ResponseCache
from woomanager.services.woocommerce.client import StoreCredentials, WooCommerceClient
from woomanager.services.woocommerce.mapping import (
    enrich_customers,
    map_customer,
    map_order,
    map_product,
    map_sales_report,
)
from woomanager.services.woocommerce.urls import normalize_store_key
from woomanager.stores.schemas import StoreRecord

REPORT_WINDOW_DAYS = 30


def default_report_window(now: datetime | None = None) -> tuple[str, str]:
    """Last 30 days including today, as `YYYY-MM-DD` strings (UTC)."""

    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=REPORT_WINDOW_DAYS - 1)
    return start.date().isoformat(), now.date().isoformat()


class StoreDataService:
    def __init__(self, resolver: CredentialResolver, cache: ResponseCache, woo: WooCommerceClient) -> None:
        self.resolver = resolver
        self.cache = cache
        self.woo = woo

    async def _orders(self, creds: StoreCredentials) -> list[dict]:
        async def fetch() -> list[dict]:
            return [map_order(order) for order in await self.woo.get_orders(creds)]

        return await self.cache.get_or_fetch("orders", normalize_store_key(creds.store_url), fetch)

    async def test_connection(self, config: StoreConfig, caller: StoreRecord | None = None) -> dict:
        creds = await self.resolver.resolve(config, caller)
        # Uncached on purpose: a connection test must reach the store.
        await self.woo.ping(creds)
        return {"success": True}

    async def orders(self, config: StoreConfig, caller: StoreRecord | None = None) -> list[dict]:
        return await self._orders(await self.resolver.resolve(config, caller))

    async def products(self, config: StoreConfig, caller: StoreRecord | None = None) -> list[dict]:
        creds = await self.resolver.resolve(config, caller)

        async def fetch() -> list[dict]:
            return [map_product(product) for product in await self.woo.get_products(creds)]

        return await self.cache.get_or_fetch("products", normalize_store_key(creds.store_url), fetch)

    async def customers(self, config: StoreConfig, caller: StoreRecord | None = None) -> list[dict]:
        creds = await self.resolver.resolve(config, caller)

        async def fetch() -> list[dict]:
            raw_customers, orders = await asyncio.gather(self.woo.get_customers(creds), self._orders(creds))
            return enrich_customers([map_customer(c) for c in raw_customers], orders)

        return await self.cache.get_or_fetch("customers", normalize_store_key(creds.store_url), fetch)

    async def sales_report(
        self,
        config: StoreConfig,
        date_min: str | None,
        date_max: str | None,
        caller: StoreRecord | None = None,
    ) -> dict:
        creds = await self.resolver.resolve(config, caller)
        if not date_min or not date_max:
            date_min, date_max = default_report_window()

        async def fetch() -> dict | None:
            return map_sales_report(await self.woo.get_sales_report(creds, date_min, date_max))

        key = f"{normalize_store_key(creds.store_url)}|{date_min}|{date_max}"
        report = await self.cache.get_or_fetch("report", key, fetch)
        return {"report": report, "date_min": date_min, "date_max": date_max}
