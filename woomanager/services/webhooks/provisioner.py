"""Upstream webhook provisioning run after a successful handshake.

Each topic is an independent step: register with WooCommerce (retried with
backoff when configured), then record the registration. A failing topic is
logged and skipped so the remaining topics still get their webhooks.
"""

import asyncio
from dataclasses import dataclass, field

from woomanager.common.config import settings
from woomanager.common.logging import logger, topic_ctx
from woomanager.common.metrics import retries_total, webhook_provisioning_total
from woomanager.common.tracing import tracer
from woomanager.services.woocommerce.client import StoreCredentials, WooCommerceClient
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import StoreRecord, WebhookRegistration

WEBHOOK_TOPICS: tuple[str, ...] = ("order.created", "order.updated")


@dataclass
class ProvisioningReport:
    """Outcome of one provisioning pass."""

    registered: list[WebhookRegistration] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> str:
        if not self.failed:
            return "complete"
        if self.registered:
            return "partial"
        return "failed"


class WebhookProvisioner:
    """Registers the fixed topic set for one store."""

    def __init__(
        self,
        records: RecordStore,
        woo: WooCommerceClient,
        public_base_url: str,
        app_name: str = "WooManager",
        topics: tuple[str, ...] = WEBHOOK_TOPICS,
        max_attempts: int = 1,
        backoff_seconds: float = 1.0,
        service_name: str | None = None,
    ) -> None:
        self.records = records
        self.woo = woo
        self.public_base_url = public_base_url.rstrip("/")
        self.app_name = app_name
        self.topics = topics
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.service_name = service_name or settings.service_name

    def delivery_url(self, store_id: int) -> str:
        return f"{self.public_base_url}/webhooks/store-events/{store_id}"

    async def _register(self, creds: StoreCredentials, topic: str, delivery_url: str) -> dict:
        """Create the upstream webhook, retrying with exponential backoff."""

        attempt = 1
        while True:
            try:
                return await self.woo.create_webhook(
                    creds,
                    name=f"{self.app_name} {topic}",
                    topic=topic,
                    delivery_url=delivery_url,
                )
            except Exception as exc:
                if attempt >= self.max_attempts:
                    raise
                backoff = self.backoff_seconds * 2 ** (attempt - 1)
                retries_total.labels(service=self.service_name, dependency="woocommerce").inc()
                logger.warning(
                    "webhook register retry topic=%s attempt=%s backoff_s=%s error=%s",
                    topic,
                    attempt,
                    backoff,
                    exc,
                )
                await asyncio.sleep(backoff)
                attempt += 1

    async def _compensate(self, creds: StoreCredentials, webhook_id: str, topic: str) -> None:
        """Remove an upstream webhook whose registration row could not be stored."""

        try:
            await self.woo.delete_webhook(creds, webhook_id)
            logger.info("webhook compensation deleted topic=%s webhook_id=%s", topic, webhook_id)
        except Exception as exc:
            logger.warning(
                "webhook compensation failed topic=%s webhook_id=%s error=%s",
                topic,
                webhook_id,
                exc,
            )

    async def provision(self, store: StoreRecord) -> ProvisioningReport:
        creds = StoreCredentials(
            store_url=store.store_url,
            consumer_key=store.consumer_key,
            consumer_secret=store.consumer_secret,
            store_id=store.id,
        )
        delivery_url = self.delivery_url(store.id)
        report = ProvisioningReport()

        for topic in self.topics:
            token = topic_ctx.set(topic)
            try:
                with tracer.start_as_current_span("webhook.provision") as span:
                    span.set_attribute("woomanager.topic", topic)
                    try:
                        hook = await self._register(creds, topic, delivery_url)
                    except Exception as exc:
                        logger.exception("webhook register failed store_id=%s topic=%s", store.id, topic)
                        webhook_provisioning_total.labels(
                            service=self.service_name, topic=topic, outcome="register_failed"
                        ).inc()
                        report.failed[topic] = str(exc)
                        continue

                    webhook_id = str(hook.get("id", ""))
                    try:
                        row = await self.records.create_webhook_registration(
                            WebhookRegistration(
                                store_id=store.id,
                                webhook_id=webhook_id,
                                topic=topic,
                                delivery_url=delivery_url,
                                status=str(hook.get("status") or "active"),
                            )
                        )
                    except Exception as exc:
                        logger.exception("webhook row persist failed store_id=%s topic=%s", store.id, topic)
                        webhook_provisioning_total.labels(
                            service=self.service_name, topic=topic, outcome="persist_failed"
                        ).inc()
                        report.failed[topic] = str(exc)
                        if webhook_id:
                            await self._compensate(creds, webhook_id, topic)
                        continue

                    webhook_provisioning_total.labels(
                        service=self.service_name, topic=topic, outcome="registered"
                    ).inc()
                    report.registered.append(row)
                    logger.info(
                        "webhook registered store_id=%s topic=%s webhook_id=%s",
                        store.id,
                        topic,
                        webhook_id,
                    )
            finally:
                topic_ctx.reset(token)

        return report
