"""Fetch and print a store's recent webhook notification history."""

import argparse
import json
import os

import httpx


def main() -> None:
    """CLI entrypoint for inspecting persisted store events."""

    parser = argparse.ArgumentParser(description="Print recent notification events for one store.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--store-id", type=int, required=True)
    parser.add_argument("--limit", type=int, default=50)
    parser.add_argument("--token", default=os.getenv("WOOMANAGER_TOKEN", ""), help="bearer token from /auth/login")
    args = parser.parse_args()

    resp = httpx.get(
        f"{args.base_url.rstrip('/')}/stores/{args.store_id}/notifications",
        params={"limit": args.limit},
        headers={"Authorization": f"Bearer {args.token}"},
        timeout=10.0,
    )
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
