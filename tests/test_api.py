"""End-to-end HTTP flows through the FastAPI app."""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from conftest import FakePushSender, subscription
from woomanager.common.config import settings
from woomanager.container import build_container
from woomanager.main import create_app
from woomanager.services.store_data.cache import InMemoryCacheStore


@pytest.fixture
def container(records, woo):
    return build_container(
        settings,
        record_store=records,
        woo=woo,
        push_sender=FakePushSender(),
        cache_store=InMemoryCacheStore(),
    )


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


def signup(client, username="owner"):
    resp = client.post("/auth/signup", json={"username": username, "password": "hunter22"})
    assert resp.status_code == 200
    return resp.json()


def connect_store(client, handle):
    resp = client.post(
        "/sso/callback",
        json={
            "key_id": 12,
            "user_id": f"{handle}__shop.example.com",
            "consumer_key": "ck_live",
            "consumer_secret": "cs_live",
            "key_permissions": "read_write",
        },
    )
    assert resp.status_code == 200
    return resp.json()


def test_health_and_metrics(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/metrics").status_code == 200


def test_signup_login_and_me(client):
    session = signup(client)
    assert session["user"]["connected"] is False
    assert "password_hash" not in session["user"]

    login = client.post("/auth/login", json={"username": "owner", "password": "hunter22"})
    assert login.status_code == 200

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {login.json()['token']}"})
    assert me.json()["user"]["app_user_id"] == session["user"]["app_user_id"]

    bad = client.post("/auth/login", json={"username": "owner", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "invalid username or password"}


def test_full_handshake_over_http(client, woo_store):
    session = signup(client)
    handle = session["user"]["app_user_id"]

    start = client.post("/sso/start", json={"store_url": "https://shop.example.com", "app_user_id": handle})
    assert start.status_code == 200
    query = parse_qs(urlparse(start.json()["authUrl"]).query)
    assert query["user_id"] == [f"{handle}__shop.example.com"]

    body = connect_store(client, handle)
    assert body["ok"] is True
    assert body["store_id"] == session["user"]["store_id"]
    assert body["app_user_id"] == handle
    assert body["store_url"] == "https://shop.example.com"
    assert body["webhooks"] == "complete"
    assert len(woo_store.webhooks) == 2


def test_sso_errors_use_error_body(client):
    unknown = client.post("/sso/start", json={"store_url": "shop.example.com", "app_user_id": "ghost"})
    assert unknown.status_code == 404
    assert "error" in unknown.json()

    missing = client.post("/sso/callback", json={"key_id": 1, "user_id": "h__shop.example.com"})
    assert missing.status_code == 400
    assert "consumer_key" in missing.json()["error"]

    malformed = client.post("/sso/callback", content=b"not json", headers={"content-type": "application/json"})
    assert malformed.status_code == 400


def test_webhook_ingestion_and_history(client):
    session = signup(client)
    headers = {"Authorization": f"Bearer {session['token']}"}
    store_id = session["user"]["store_id"]
    assert client.post("/push/subscribe", json={"store_id": store_id, "subscription": subscription(1)}).json()["ok"]

    resp = client.post(
        f"/webhooks/store-events/{store_id}",
        json={"id": 77, "total": "20.00", "billing": {"first_name": "Ravi"}},
        headers={"X-WC-Webhook-Topic": "order.created"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    raw = client.post(
        f"/webhooks/store-events/{store_id}",
        content=b"webhook_id=5",
        headers={"X-WC-Webhook-Topic": "action.woocommerce_webhook_ping"},
    )
    assert raw.status_code == 200

    history = client.get(f"/stores/{store_id}/notifications", headers=headers).json()["notifications"]
    assert [event["topic"] for event in history] == ["action.woocommerce_webhook_ping", "order.created"]
    assert history[0]["payload"] == {"raw": "webhook_id=5"}
    assert history[1]["resource"] == "order"
    assert history[1]["event"] == "created"


def test_push_subscribe_is_idempotent(client, container):
    store_id = signup(client)["user"]["store_id"]

    for _ in range(2):
        resp = client.post("/push/subscribe", json={"store_id": store_id, "subscription": subscription(1)})
        assert resp.status_code == 200

    assert container.subscriptions.list(store_id) == [subscription(1)]
    assert client.get("/push/vapid-public-key").json() == {"publicKey": "test-public-key"}


def test_secondary_credentials_require_bearer(client):
    assert client.get("/secondary-credentials/status").status_code == 401

    token = signup(client)["token"]
    headers = {"Authorization": f"Bearer {token}"}

    connect = client.post(
        "/secondary-credentials/connect",
        json={"key_id": "rzp_test_ABCDEF", "key_secret": "s3cret"},
        headers=headers,
    )
    assert connect.status_code == 200
    assert connect.json()["user"]["razorpay_connected"] is True

    status = client.get("/secondary-credentials/status", headers=headers).json()
    assert status["razorpay_connected"] is True
    assert "s3cret" not in str(status)

    skip = client.post("/secondary-credentials/skip", headers=headers)
    assert skip.json()["user"]["razorpay_skipped"] is True


def test_store_data_reads_are_cached(client, woo_store):
    session = signup(client)
    handle = session["user"]["app_user_id"]
    headers = {"Authorization": f"Bearer {session['token']}"}
    connect_store(client, handle)
    woo_store.orders = [{"id": 1, "customer_id": 3, "total": "12.00", "billing": {"first_name": "Mina"}}]
    woo_store.customers = [{"id": 3, "email": "mina@example.com", "first_name": "Mina"}]

    config = {"config": {"app_user_id": handle}}
    first = client.post("/orders", json=config, headers=headers)
    second = client.post("/orders", json=config, headers=headers)
    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["orders"][0]["customer"] == "Mina"
    assert len(woo_store.calls("GET", "/orders")) == 1

    customers = client.post("/customers", json=config, headers=headers).json()["customers"]
    assert customers[0]["orders_count"] == 1
    assert customers[0]["total_spent"] == 12.0

    report = client.post("/reports/sales", json=config, headers=headers).json()
    assert report["report"] is None
    assert report["date_min"] <= report["date_max"]

    lookup = client.post("/store/by-app-user", json={"app_user_id": f"{handle}__shop.example.com"})
    assert lookup.json()["store"]["connected"] is True


def test_store_data_errors(client, woo_store):
    assert client.post("/orders", json={}).status_code == 400
    headers = {"Authorization": f"Bearer {signup(client)['token']}"}
    assert client.post("/orders", json={"config": {"app_user_id": "ghost"}}, headers=headers).status_code == 404

    woo_store.status_override = 401
    resp = client.post("/auth/test", json={"config": {"url": "shop.example.com", "key": "ck", "secret": "cs"}})
    assert resp.status_code == 502
    assert resp.json()["upstream_status"] == 401


def test_stored_store_reads_require_the_owner(client, woo_store):
    owner = signup(client, "owner")
    connect_store(client, owner["user"]["app_user_id"])
    intruder = signup(client, "intruder")
    woo_store.orders = [{"id": 5, "billing": {"first_name": "Ann", "email": "ann@example.com"}}]
    owner_id = owner["user"]["store_id"]
    intruder_headers = {"Authorization": f"Bearer {intruder['token']}"}

    for path in ("/orders", "/products", "/customers", "/reports/sales", "/auth/test"):
        anonymous = client.post(path, json={"config": {"store_id": owner_id}})
        assert anonymous.status_code == 401, path
        by_handle = client.post(path, json={"config": {"app_user_id": owner["user"]["app_user_id"]}})
        assert by_handle.status_code == 401, path
        foreign = client.post(path, json={"config": {"store_id": owner_id}}, headers=intruder_headers)
        assert foreign.status_code == 403, path

    bad_token = client.post(
        "/orders", json={"config": {"store_id": owner_id}}, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert bad_token.status_code == 401
    assert woo_store.calls("GET", "/orders") == []

    inline = client.post(
        "/orders", json={"config": {"url": "shop.example.com", "key": "ck_live", "secret": "cs_live"}}
    )
    assert inline.status_code == 200
    assert inline.json()["orders"][0]["id"] == 5


def test_notification_history_is_private(client):
    owner = signup(client, "owner")
    intruder = signup(client, "intruder")
    owner_id = owner["user"]["store_id"]
    client.post(
        f"/webhooks/store-events/{owner_id}",
        json={"id": 5, "billing": {"email": "ann@example.com"}},
        headers={"X-WC-Webhook-Topic": "order.created"},
    )

    assert client.get(f"/stores/{owner_id}/notifications").status_code == 401
    foreign = client.get(
        f"/stores/{owner_id}/notifications", headers={"Authorization": f"Bearer {intruder['token']}"}
    )
    assert foreign.status_code == 403
    assert "ann@example.com" not in foreign.text

    own = client.get(f"/stores/{owner_id}/notifications", headers={"Authorization": f"Bearer {owner['token']}"})
    assert len(own.json()["notifications"]) == 1


def test_malformed_order_webhook_is_acknowledged(client):
    session = signup(client)
    store_id = session["user"]["store_id"]
    client.post("/push/subscribe", json={"store_id": store_id, "subscription": subscription(1)})

    resp = client.post(
        f"/webhooks/store-events/{store_id}",
        json={"id": 1, "billing": "n/a"},
        headers={"X-WC-Webhook-Topic": "order.created"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    history = client.get(
        f"/stores/{store_id}/notifications", headers={"Authorization": f"Bearer {session['token']}"}
    ).json()["notifications"]
    assert history[0]["payload"]["billing"] == "n/a"
