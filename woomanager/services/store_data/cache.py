"""Short-TTL response cache for store reads.

Entries are keyed by resource kind and normalized store identity. Nothing
invalidates an entry early: webhook events reach the operator through push,
and bulk reads may lag by up to the resource TTL. Concurrent misses on the
same key share one upstream fetch.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from woomanager.common.config import settings
from woomanager.common.metrics import cache_lookups_total

RESOURCE_KINDS = ("orders", "products", "customers", "report")


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    stored_at: float


class CacheStore(ABC):
    """Backend holding cache entries; expiry is decided by `ResponseCache`."""

    @abstractmethod
    def get(self, kind: str, key: str) -> CacheEntry | None: ...

    @abstractmethod
    def set(self, kind: str, key: str, entry: CacheEntry, ttl_seconds: float) -> None: ...

    @abstractmethod
    def delete(self, kind: str, key: str) -> None: ...


class InMemoryCacheStore(CacheStore):
    def __init__(self) -> None:
        self._tables: dict[str, dict[str, CacheEntry]] = {kind: {} for kind in RESOURCE_KINDS}

    def get(self, kind: str, key: str) -> CacheEntry | None:
        return self._tables.setdefault(kind, {}).get(key)

    def set(self, kind: str, key: str, entry: CacheEntry, ttl_seconds: float) -> None:
        self._tables.setdefault(kind, {})[key] = entry

    def delete(self, kind: str, key: str) -> None:
        self._tables.setdefault(kind, {}).pop(key, None)


class RedisCacheStore(CacheStore):
    """Entries as JSON strings; Redis expiry backs up the TTL check."""

    def __init__(self, client, prefix: str = "woomanager:cache") -> None:
        self.client = client
        self.prefix = prefix

    def _key(self, kind: str, key: str) -> str:
        return f"{self.prefix}:{kind}:{key}"

    def get(self, kind: str, key: str) -> CacheEntry | None:
        raw = self.client.get(self._key(kind, key))
        if raw is None:
            return None
        data = json.loads(raw)
        return CacheEntry(payload=data["payload"], stored_at=float(data["stored_at"]))

    def set(self, kind: str, key: str, entry: CacheEntry, ttl_seconds: float) -> None:
        self.client.setex(
            self._key(kind, key),
            max(1, int(ttl_seconds) + 1),
            json.dumps({"payload": entry.payload, "stored_at": entry.stored_at}),
        )

    def delete(self, kind: str, key: str) -> None:
        self.client.delete(self._key(kind, key))


def default_ttls() -> dict[str, float]:
    return {
        "orders": settings.cache_ttl_orders_seconds,
        "products": settings.cache_ttl_products_seconds,
        "customers": settings.cache_ttl_customers_seconds,
        "report": settings.cache_ttl_report_seconds,
    }


class ResponseCache:
    """TTL lookups over a `CacheStore` plus in-flight fetch coalescing."""

    def __init__(
        self,
        store: CacheStore,
        ttls: dict[str, float] | None = None,
        clock: Callable[[], float] = time.time,
        service_name: str | None = None,
    ) -> None:
        self.store = store
        self.ttls = ttls if ttls is not None else default_ttls()
        self.clock = clock
        self.service_name = service_name or settings.service_name
        self._inflight: dict[tuple[str, str], asyncio.Future] = {}

    def ttl_for(self, kind: str) -> float:
        if kind not in self.ttls:
            raise KeyError(f"unknown cache resource kind: {kind}")
        return float(self.ttls[kind])

    def get(self, kind: str, key: str, ttl_ms: float | None = None) -> CacheEntry | None:
        """Entry if younger than the TTL; stale entries are evicted."""

        ttl = ttl_ms / 1000.0 if ttl_ms is not None else self.ttl_for(kind)
        entry = self.store.get(kind, key)
        if entry is None:
            cache_lookups_total.labels(service=self.service_name, kind=kind, result="miss").inc()
            return None
        if self.clock() - entry.stored_at < ttl:
            cache_lookups_total.labels(service=self.service_name, kind=kind, result="hit").inc()
            return entry
        self.store.delete(kind, key)
        cache_lookups_total.labels(service=self.service_name, kind=kind, result="expired").inc()
        return None

    def set(self, kind: str, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(payload=payload, stored_at=self.clock())
        self.store.set(kind, key, entry, self.ttl_for(kind))
        return entry

    async def get_or_fetch(self, kind: str, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Cached payload, or the result of one shared `fetch()` call."""

        entry = self.get(kind, key)
        if entry is not None:
            return entry.payload

        slot = (kind, key)
        future = self._inflight.get(slot)
        if future is None:
            future = asyncio.ensure_future(self._fill(kind, key, fetch))
            self._inflight[slot] = future
            future.add_done_callback(lambda done: self._release(slot, done))
        else:
            cache_lookups_total.labels(service=self.service_name, kind=kind, result="coalesced").inc()
        # Shielded so one cancelled waiter does not abort the fetch for the others.
        return await asyncio.shield(future)

    async def _fill(self, kind: str, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        payload = await fetch()
        self.set(kind, key, payload)
        return payload

    def _release(self, slot: tuple[str, str], done: asyncio.Future) -> None:
        if self._inflight.get(slot) is done:
            del self._inflight[slot]
