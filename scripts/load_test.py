"""Async webhook burst against the relay's ingestion endpoint."""

import argparse
import asyncio
import statistics
import time

import httpx

from send_webhook import sample_order


async def send_one(client: httpx.AsyncClient, base_url: str, store_id: int, order_id: int):
    """Send one order webhook and return (status_code, latency_ms)."""

    started = time.perf_counter()
    try:
        resp = await client.post(
            f"{base_url}/webhooks/store-events/{store_id}",
            json=sample_order(order_id),
            headers={"X-WC-Webhook-Topic": "order.created"},
        )
        latency = (time.perf_counter() - started) * 1000
        return resp.status_code, latency
    except httpx.HTTPError:
        latency = (time.perf_counter() - started) * 1000
        return 599, latency


async def run(total: int, concurrency: int, base_url: str, store_id: int):
    """Execute a bounded-concurrency burst and print summary stats."""

    sem = asyncio.Semaphore(concurrency)
    results = []

    async with httpx.AsyncClient(timeout=10.0) as client:
        async def worker(i: int):
            async with sem:
                return await send_one(client, base_url, store_id, 10_000 + i)

        tasks = [asyncio.create_task(worker(i)) for i in range(total)]
        for task in asyncio.as_completed(tasks):
            results.append(await task)

    codes = [c for c, _ in results]
    lats = [latency for _, latency in results]
    success = sum(1 for c in codes if 200 <= c < 300)
    errors = total - success

    def pct(values, p):
        if not values:
            return 0.0
        idx = min(len(values) - 1, max(0, int((p / 100.0) * len(values)) - 1))
        return sorted(values)[idx]

    print(f"total={total}")
    print(f"success={success}")
    print(f"errors={errors}")
    print(f"error_rate={(errors / total) * 100:.2f}%")
    print(f"p50_ms={pct(lats, 50):.2f}")
    print(f"p95_ms={pct(lats, 95):.2f}")
    print(f"p99_ms={pct(lats, 99):.2f}")
    print(f"avg_ms={statistics.mean(lats):.2f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--total", type=int, default=500)
    parser.add_argument("--concurrency", type=int, default=50)
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--store-id", type=int, required=True)
    args = parser.parse_args()
    asyncio.run(run(args.total, args.concurrency, args.base_url.rstrip("/"), args.store_id))
