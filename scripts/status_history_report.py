"""Fetch and print one customer's status history as JSON."""

import argparse
import json

import httpx


def main() -> None:
    """CLI entrypoint for status history audits."""

    parser = argparse.ArgumentParser(description="Fetch the status history of one customer.")
    parser.add_argument("customer_id")
    parser.add_argument("--customers-url", default="http://localhost:8001")
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--oldest-first", action="store_true")
    parser.add_argument("--limit", type=int, default=100)
    args = parser.parse_args()

    resp = httpx.get(
        f"{args.customers_url}/customers/{args.customer_id}/status-history",
        params={"newest_first": not args.oldest_first, "limit": args.limit},
        headers={"x-api-key": args.api_key},
        timeout=10.0,
    )
    resp.raise_for_status()
    print(json.dumps({"total": int(resp.headers.get("x-total-count", 0)), "history": resp.json()}, indent=2))


if __name__ == "__main__":
    main()
