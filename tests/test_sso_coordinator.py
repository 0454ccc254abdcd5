"""Store-connection handshake: authorization URL and callback handling."""

import asyncio
from urllib.parse import parse_qs, urlparse
from uuid import uuid4

import pytest

from woomanager.common.errors import NotFoundError, ValidationError
from woomanager.services.sso.service import SsoCoordinator
from woomanager.services.webhooks.provisioner import WebhookProvisioner


def make_coordinator(records, woo):
    provisioner = WebhookProvisioner(records, woo, public_base_url="https://relay.example.com")
    return SsoCoordinator(
        records,
        woo,
        provisioner,
        public_base_url="https://relay.example.com/",
        client_app_url="https://app.example.com",
    )


def test_initiate_builds_wc_auth_url(records, woo):
    async def scenario():
        await records.create_store("owner", "", "pwa-user-1")
        return await make_coordinator(records, woo).initiate("https://shop.example.com/", "pwa-user-1")

    url = urlparse(asyncio.run(scenario()))
    query = parse_qs(url.query)

    assert url.netloc == "shop.example.com"
    assert url.path == "/wc-auth/v1/authorize"
    assert query["user_id"] == ["pwa-user-1__shop.example.com"]
    assert query["scope"] == ["read_write"]
    assert query["callback_url"] == ["https://relay.example.com/sso/callback"]
    assert query["return_url"] == ["https://app.example.com/#/sso-complete"]


def test_initiate_requires_known_handle(records, woo):
    coordinator = make_coordinator(records, woo)

    with pytest.raises(ValidationError):
        asyncio.run(coordinator.initiate("", "pwa-user-1"))
    with pytest.raises(NotFoundError):
        asyncio.run(coordinator.initiate("shop.example.com", "nobody"))


def test_callback_persists_keys_and_provisions_webhooks(records, woo, woo_store):
    async def scenario():
        store = await records.create_store("owner", "", "pwa-user-1")
        result = await make_coordinator(records, woo).complete_callback(
            "42", "pwa-user-1__shop.example.com", "ck_live", "cs_live"
        )
        return store, result, await records.list_webhook_registrations(store.id)

    store, result, registrations = asyncio.run(scenario())

    assert result.store.id == store.id
    assert result.store.store_url == "https://shop.example.com"
    assert result.store.consumer_key == "ck_live"
    assert result.store.consumer_secret == "cs_live"
    assert result.store.woo_key_id == "42"
    assert result.progress.state == "WEBHOOKS_PROVISIONED"
    assert result.webhook_status == "complete"
    assert sorted(r.topic for r in registrations) == ["order.created", "order.updated"]
    assert all(r.delivery_url == f"https://relay.example.com/webhooks/store-events/{store.id}" for r in registrations)
    create_calls = woo_store.calls("POST", "/webhooks")
    assert len(create_calls) == 2
    assert create_calls[0].url.params["consumer_key"] == "ck_live"


def test_callback_with_missing_fields_changes_nothing(records, woo, woo_store):
    async def scenario():
        store = await records.create_store("owner", "", "pwa-user-1")
        with pytest.raises(ValidationError) as excinfo:
            await make_coordinator(records, woo).complete_callback("42", "pwa-user-1__shop.example.com", "", "cs")
        return excinfo.value, await records.get_store(store.id)

    error, store = asyncio.run(scenario())

    assert "consumer_key" in error.message
    assert not store.connected
    assert woo_store.requests == []


def test_callback_for_unknown_handle_is_not_found(records, woo):
    coordinator = make_coordinator(records, woo)

    with pytest.raises(NotFoundError):
        asyncio.run(coordinator.complete_callback("1", "ghost__shop.example.com", "ck", "cs"))


def test_callback_succeeds_when_every_webhook_fails(records, woo, woo_store):
    """Provisioning is best effort; the credentials stay stored."""

    woo_store.failing_topics = {"order.created", "order.updated"}

    async def scenario():
        store = await records.create_store("owner", "", "pwa-user-1")
        result = await make_coordinator(records, woo).complete_callback(
            "42", "pwa-user-1__shop.example.com", "ck", "cs"
        )
        return result, await records.list_webhook_registrations(store.id)

    result, registrations = asyncio.run(scenario())

    assert result.store.connected
    assert result.webhook_status == "failed"
    assert registrations == []


def test_repeated_handshake_registers_webhooks_again(records, woo):
    async def scenario():
        store = await records.create_store("owner", "", "pwa-user-1")
        coordinator = make_coordinator(records, woo)
        await coordinator.complete_callback("1", "pwa-user-1__shop.example.com", "ck", "cs")
        await coordinator.complete_callback("2", "pwa-user-1__shop.example.com", "ck2", "cs2")
        return await records.get_store(store.id), await records.list_webhook_registrations(store.id)

    store, registrations = asyncio.run(scenario())

    assert store.consumer_key == "ck2"
    assert store.woo_key_id == "2"
    assert len(registrations) == 4


@pytest.mark.parametrize("glue", ["", "|"])
def test_callback_recovers_token_that_lost_its_separator(records, woo, glue):
    handle = uuid4().hex

    async def scenario():
        await records.create_store("decoy", "", uuid4().hex)
        store = await records.create_store("owner", "", handle)
        result = await make_coordinator(records, woo).complete_callback(
            "42", f"{handle}{glue}shop.example.com", "ck_live", "cs_live"
        )
        return store, result

    store, result = asyncio.run(scenario())

    assert result.store.id == store.id
    assert result.store.store_url == "https://shop.example.com"
    assert result.store.consumer_key == "ck_live"


def test_callback_refuses_to_pick_between_stores(records, woo, woo_store):
    async def scenario():
        await records.create_store("short", "", "abc")
        await records.create_store("long", "", "abcshop")
        with pytest.raises(ValidationError):
            await make_coordinator(records, woo).complete_callback("1", "abcshop.example.com", "ck", "cs")
        return await records.find_store_by_app_user_id("abc"), await records.find_store_by_app_user_id("abcshop")

    short, long = asyncio.run(scenario())

    assert not short.connected
    assert not long.connected
    assert woo_store.requests == []


def test_callback_with_unmatched_glued_token_is_not_found(records, woo):
    async def scenario():
        await records.create_store("owner", "", "pwa-user-1")
        await make_coordinator(records, woo).complete_callback("1", "ghostshop.example.com", "ck", "cs")

    with pytest.raises(NotFoundError):
        asyncio.run(scenario())
