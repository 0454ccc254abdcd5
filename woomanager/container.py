"""Wires the relay's components from settings.

Every store and client is injected, so tests build a container around fakes
instead of patching module globals.
"""

from dataclasses import dataclass

import redis
from fastapi import Request

from woomanager.common.config import CommonSettings, settings
from woomanager.common.db import Base, make_engine, make_session_factory
from woomanager.common.errors import ConfigurationError
from woomanager.common.logging import logger
from woomanager.services.auth.service import AuthService
from woomanager.services.auth.tokens import TokenService
from woomanager.services.credentials.resolver import CredentialResolver
from woomanager.services.credentials.secondary import SecondaryCredentialService
from woomanager.services.notifications.dispatcher import PushDispatcher
from woomanager.services.notifications.sender import WebPushSender
from woomanager.services.notifications.subscriptions import InMemorySubscriptionStore, SubscriptionStore
from woomanager.services.sso.service import SsoCoordinator
from woomanager.services.store_data.cache import CacheStore, InMemoryCacheStore, RedisCacheStore, ResponseCache
from woomanager.services.store_data.service import StoreDataService
from woomanager.services.webhooks.ingestion import WebhookIngestionService
from woomanager.services.webhooks.provisioner import WebhookProvisioner
from woomanager.services.woocommerce.client import WooCommerceClient
from woomanager.stores.base import RecordStore
from woomanager.stores.baserow import BaserowRecordStore
from woomanager.stores.sql import SqlRecordStore


@dataclass
class ServiceContainer:
    records: RecordStore
    woo: WooCommerceClient
    sso: SsoCoordinator
    provisioner: WebhookProvisioner
    subscriptions: SubscriptionStore
    dispatcher: PushDispatcher
    ingestion: WebhookIngestionService
    cache: ResponseCache
    resolver: CredentialResolver
    secondary: SecondaryCredentialService
    auth: AuthService
    store_data: StoreDataService


def build_record_store(cfg: CommonSettings) -> RecordStore:
    if cfg.record_store_backend == "baserow":
        return BaserowRecordStore(
            api_url=cfg.baserow_api_url,
            token=cfg.baserow_token,
            store_table_id=cfg.baserow_store_table_id,
            webhook_table_id=cfg.baserow_webhook_table_id,
            notification_table_id=cfg.baserow_notification_table_id,
            timeout=cfg.upstream_timeout_seconds,
        )
    if cfg.record_store_backend == "sql":
        engine = make_engine(cfg.database_url)
        # Dev/test convenience; deployed databases are managed by alembic.
        Base.metadata.create_all(bind=engine)
        return SqlRecordStore(make_session_factory(engine))
    raise ConfigurationError(f"unknown RECORD_STORE_BACKEND: {cfg.record_store_backend}")


def build_cache_store(cfg: CommonSettings) -> CacheStore:
    if cfg.cache_backend == "memory":
        return InMemoryCacheStore()
    if cfg.cache_backend == "redis":
        return RedisCacheStore(redis.Redis.from_url(cfg.redis_url, decode_responses=True))
    raise ConfigurationError(f"unknown CACHE_BACKEND: {cfg.cache_backend}")


def build_container(
    cfg: CommonSettings = settings,
    record_store: RecordStore | None = None,
    woo: WooCommerceClient | None = None,
    push_sender: WebPushSender | None = None,
    cache_store: CacheStore | None = None,
    subscriptions: SubscriptionStore | None = None,
) -> ServiceContainer:
    records = record_store or build_record_store(cfg)
    woo = woo or WooCommerceClient(timeout=cfg.upstream_timeout_seconds)
    sender = push_sender or WebPushSender(
        public_key=cfg.vapid_public_key,
        private_key=cfg.vapid_private_key,
        contact=cfg.vapid_contact,
        ttl_seconds=cfg.push_ttl_seconds,
        timeout_seconds=cfg.push_timeout_seconds,
    )
    subscriptions = subscriptions or InMemorySubscriptionStore()

    provisioner = WebhookProvisioner(
        records,
        woo,
        public_base_url=cfg.public_base_url,
        app_name=cfg.app_name,
        max_attempts=cfg.webhook_provision_attempts,
        backoff_seconds=cfg.webhook_provision_backoff_seconds,
        service_name=cfg.service_name,
    )
    sso = SsoCoordinator(
        records,
        woo,
        provisioner,
        public_base_url=cfg.public_base_url,
        client_app_url=cfg.client_app_url,
        app_name=cfg.app_name,
        service_name=cfg.service_name,
    )
    dispatcher = PushDispatcher(
        sender,
        concurrency=cfg.push_concurrency,
        timeout_seconds=cfg.push_timeout_seconds,
        queue_maxsize=cfg.push_queue_maxsize,
        service_name=cfg.service_name,
    )
    ingestion = WebhookIngestionService(records, subscriptions, dispatcher, service_name=cfg.service_name)
    cache = ResponseCache(
        cache_store or build_cache_store(cfg),
        ttls={
            "orders": cfg.cache_ttl_orders_seconds,
            "products": cfg.cache_ttl_products_seconds,
            "customers": cfg.cache_ttl_customers_seconds,
            "report": cfg.cache_ttl_report_seconds,
        },
        service_name=cfg.service_name,
    )
    resolver = CredentialResolver(records)
    secondary = SecondaryCredentialService(records, key=cfg.razorpay_enc_key or None)
    auth = AuthService(records, TokenService(cfg.jwt_secret, cfg.jwt_ttl_minutes), bcrypt_rounds=cfg.bcrypt_rounds)

    logger.info(
        "container built record_store=%s cache=%s push_configured=%s",
        type(records).__name__,
        type(cache.store).__name__,
        sender.configured,
    )
    return ServiceContainer(
        records=records,
        woo=woo,
        sso=sso,
        provisioner=provisioner,
        subscriptions=subscriptions,
        dispatcher=dispatcher,
        ingestion=ingestion,
        cache=cache,
        resolver=resolver,
        secondary=secondary,
        auth=auth,
        store_data=StoreDataService(resolver, cache, woo),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
