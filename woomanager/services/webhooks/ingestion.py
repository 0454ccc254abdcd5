"""Inbound store webhook handling: persist, then fan out push notifications."""

from dataclasses import dataclass, field

from woomanager.common.config import settings
from woomanager.common.errors import NotFoundError, ValidationError
from woomanager.common.logging import logger
from woomanager.common.metrics import notification_persist_failures_total, webhook_events_total
from woomanager.services.notifications.dispatcher import PushDispatcher, PushJob
from woomanager.services.notifications.payloads import NOTIFY_TOPICS, build_push_payload
from woomanager.services.notifications.subscriptions import SubscriptionStore
from woomanager.stores.base import RecordStore
from woomanager.stores.schemas import NotificationEvent


@dataclass
class IngestionResult:
    persisted: bool
    push_jobs: list[PushJob] = field(default_factory=list)


class WebhookIngestionService:
    """Stores every event and enqueues pushes for order events."""

    def __init__(
        self,
        records: RecordStore,
        subscriptions: SubscriptionStore,
        dispatcher: PushDispatcher,
        service_name: str | None = None,
    ) -> None:
        self.records = records
        self.subscriptions = subscriptions
        self.dispatcher = dispatcher
        self.service_name = service_name or settings.service_name

    async def ingest(self, store_id: int, topic: str, resource: str, event: str, payload: dict) -> IngestionResult:
        webhook_events_total.labels(service=self.service_name, topic=topic or "unknown").inc()

        persisted = True
        try:
            await self.records.create_notification_event(
                NotificationEvent(store_id=store_id, topic=topic, resource=resource, event=event, payload=payload)
            )
        except Exception:
            # History is best effort; the operator still gets the push.
            persisted = False
            notification_persist_failures_total.labels(service=self.service_name).inc()
            logger.exception("notification persist failed store_id=%s topic=%s", store_id, topic)

        result = IngestionResult(persisted=persisted)
        if topic not in NOTIFY_TOPICS:
            return result
        if not self.dispatcher.configured:
            logger.info("push not configured; skipping fan-out store_id=%s", store_id)
            return result
        try:
            subscriptions = self.subscriptions.list(store_id)
            if not subscriptions:
                return result
            push_payload = build_push_payload(topic, store_id, payload)
            result.push_jobs = self.dispatcher.enqueue(store_id, subscriptions, push_payload)
        except Exception:
            # The event is already recorded; a bad body must not fail the delivery.
            logger.exception("push fan-out failed store_id=%s topic=%s", store_id, topic)
            return result
        logger.info(
            "push fan-out queued store_id=%s topic=%s jobs=%s",
            store_id,
            topic,
            len(result.push_jobs),
        )
        return result

    async def subscribe(self, store_id: int, subscription: dict) -> bool:
        """Register a device subscription; re-subscribing is a no-op."""

        if not isinstance(subscription, dict) or not subscription.get("endpoint"):
            raise ValidationError("subscription.endpoint is required")
        if await self.records.get_store(store_id) is None:
            raise NotFoundError(f"store {store_id} not found")
        added = self.subscriptions.add(store_id, subscription)
        logger.info("push subscription store_id=%s added=%s", store_id, added)
        return added
