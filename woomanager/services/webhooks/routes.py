import json

from fastapi import APIRouter, Depends, Request

from woomanager.common.logging import store_id_ctx
from woomanager.container import ServiceContainer, get_container

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _parse_body(raw: bytes) -> dict:
    if not raw:
        return {}
    text = raw.decode("utf-8", errors="replace")
    try:
        body = json.loads(text)
    except ValueError:
        return {"raw": text}
    return body if isinstance(body, dict) else {"raw": body}


@router.post("/store-events/{store_id}")
async def store_event(store_id: int, request: Request, container: ServiceContainer = Depends(get_container)):
    """Receive one WooCommerce delivery.

    Answers 200 once persistence was attempted; push delivery happens later on
    the dispatcher and never affects the response.
    """

    store_id_ctx.set(str(store_id))
    topic = request.headers.get("x-wc-webhook-topic", "")
    topic_resource, _, topic_event = topic.partition(".")
    resource = request.headers.get("x-wc-webhook-resource") or topic_resource
    event = request.headers.get("x-wc-webhook-event") or topic_event
    payload = _parse_body(await request.body())

    await container.ingestion.ingest(store_id, topic, resource, event, payload)
    return {"ok": True}
