"""Shared fixtures: SQLite record store, fake WooCommerce, fake push sender."""

import asyncio
import json
import os

# Settings are read at import time; pin the test environment before any woomanager import.
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("RECORD_STORE_BACKEND", "sql")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdef0123")
os.environ.setdefault("PUBLIC_BASE_URL", "https://relay.example.com")
os.environ.setdefault("CLIENT_APP_URL", "https://app.example.com")
os.environ.setdefault("RAZORPAY_ENC_KEY", "00" * 32)

import httpx
import pytest

from woomanager.common.db import Base, make_engine, make_session_factory
from woomanager.common.errors import ConfigurationError
from woomanager.services.notifications.sender import PushDeliveryError
from woomanager.services.woocommerce.client import WooCommerceClient
from woomanager.stores.sql import SqlRecordStore


@pytest.fixture
def records():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield SqlRecordStore(make_session_factory(engine))
    engine.dispose()


class FakeWooStore:
    """In-process stand-in for a store's `/wp-json/wc/v3` API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.webhooks: dict[int, dict] = {}
        self.failing_topics: set[str] = set()
        self.orders: list[dict] = []
        self.products: list[dict] = []
        self.customers: list[dict] = []
        self.sales: list[dict] = []
        self.status_override: int | None = None
        self._next_id = 100

    def calls(self, method: str, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.endswith(suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_override is not None:
            return httpx.Response(self.status_override, json={"message": "forced failure"})
        path = request.url.path.split("/wp-json/wc/v3/", 1)[-1]
        if request.method == "POST" and path == "webhooks":
            body = json.loads(request.content)
            if body["topic"] in self.failing_topics:
                return httpx.Response(500, json={"message": "topic rejected"})
            self._next_id += 1
            hook = {"id": self._next_id, **body}
            self.webhooks[self._next_id] = hook
            return httpx.Response(201, json=hook)
        if request.method == "DELETE" and path.startswith("webhooks/"):
            hook = self.webhooks.pop(int(path.split("/")[1]), None)
            return httpx.Response(200 if hook else 404, json=hook or {})
        if request.method == "GET" and path == "orders":
            return httpx.Response(200, json=self.orders, headers={"X-WP-TotalPages": "1"})
        if request.method == "GET" and path == "products":
            return httpx.Response(200, json=self.products)
        if request.method == "GET" and path == "customers":
            return httpx.Response(200, json=self.customers)
        if request.method == "GET" and path == "reports/sales":
            return httpx.Response(200, json=self.sales)
        return httpx.Response(404, json={"message": "no route"})


@pytest.fixture
def woo_store():
    return FakeWooStore()


@pytest.fixture
def woo(woo_store):
    return WooCommerceClient(timeout=5.0, transport=httpx.MockTransport(woo_store.handler))


class FakePushSender:
    """Records sends; per-endpoint failures and delays are configurable."""

    def __init__(self, configured: bool = True, delay: float = 0.0) -> None:
        self.public_key = "test-public-key" if configured else ""
        self.private_key = "test-private-key" if configured else ""
        self.delay = delay
        self.sent: list[tuple[dict, dict]] = []
        self.failures: dict[str, int] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    def require_public_key(self) -> str:
        if not self.configured:
            raise ConfigurationError("VAPID keys are not configured")
        return self.public_key

    async def send(self, subscription: dict, payload: dict) -> int:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            status = self.failures.get(subscription.get("endpoint", ""))
            if status is not None:
                raise PushDeliveryError(f"push service answered {status}", status)
            self.sent.append((subscription, payload))
            return 201
        finally:
            self.in_flight -= 1


@pytest.fixture
def push_sender():
    return FakePushSender()


def subscription(n: int) -> dict:
    return {
        "endpoint": f"https://push.example.com/sub/{n}",
        "keys": {"p256dh": f"p256dh-{n}", "auth": f"auth-{n}"},
    }


async def connected_store(records, username: str = "owner", domain: str = "shop.example.com"):
    """A signed-up store that already completed the handshake."""

    store = await records.create_store(username, "", f"handle-{username}")
    return await records.update_store(
        store.id,
        {
            "store_url": f"https://{domain}",
            "consumer_key": "ck_test",
            "consumer_secret": "cs_test",
            "woo_key_id": "7",
        },
    )
