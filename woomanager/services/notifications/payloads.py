"""Push payload assembly for order events."""

from woomanager.services.woocommerce.mapping import billing_name

NOTIFY_TOPICS = frozenset({"order.created", "order.updated"})
FALLBACK_BODY = "Open WooManager to view the order."


def build_push_payload(topic: str, store_id: int, order: dict) -> dict:
    if not isinstance(order, dict):
        order = {}
    order_id = order.get("id")
    ref = f" #{order_id}" if order_id is not None else ""
    title = f"New order{ref}" if topic == "order.created" else f"Order{ref} updated"

    parts = []
    name = billing_name(order.get("billing"))
    if name:
        parts.append(name)
    total = order.get("total")
    if total not in (None, ""):
        symbol = order.get("currency_symbol") or order.get("currency") or ""
        parts.append(f"Total: {symbol}{total}" if len(symbol) <= 1 else f"Total: {symbol} {total}")

    return {
        "title": title,
        "body": " · ".join(parts) if parts else FALLBACK_BODY,
        "orderId": order_id,
        "storeId": store_id,
        "topic": topic,
    }
