"""Post a WooCommerce-style order webhook to a running relay.

Useful for exercising ingestion and push fan-out without a real store.
"""

import argparse
import json
import random
from pathlib import Path

import httpx


def sample_order(order_id: int) -> dict:
    """Minimal order body with the fields the push payload reads."""

    return {
        "id": order_id,
        "status": "processing",
        "currency": "INR",
        "currency_symbol": "₹",
        "total": f"{random.randint(100, 50000) / 100:.2f}",
        "billing": {"first_name": "Test", "last_name": "Customer", "email": "test@example.com"},
        "line_items": [{"name": "Sample product", "quantity": 1}],
    }


def send(base_url: str, store_id: int, topic: str, payload: dict) -> httpx.Response:
    resource, _, event = topic.partition(".")
    return httpx.post(
        f"{base_url.rstrip('/')}/webhooks/store-events/{store_id}",
        json=payload,
        headers={
            "X-WC-Webhook-Topic": topic,
            "X-WC-Webhook-Resource": resource,
            "X-WC-Webhook-Event": event,
        },
        timeout=10.0,
    )


def main() -> None:
    """Parse CLI args and send one webhook delivery."""

    parser = argparse.ArgumentParser(description="Send a store webhook to the relay.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--store-id", type=int, required=True)
    parser.add_argument("--topic", default="order.created")
    parser.add_argument("--order-id", type=int, default=1001)
    parser.add_argument("--file", dest="json_file", default=None, help="Path to a JSON order body")
    args = parser.parse_args()

    payload = json.loads(Path(args.json_file).read_text()) if args.json_file else sample_order(args.order_id)
    resp = send(args.base_url, args.store_id, args.topic, payload)
    print(f"status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    main()
