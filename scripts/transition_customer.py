"""Apply one status transition to a customer from the command line.

Useful for back-office corrections; the change is recorded in the customer's
history under the given actor like any other transition.
"""

import argparse
import json

import httpx


def main() -> None:
    """Parse CLI args and post one status transition."""

    parser = argparse.ArgumentParser(description="Post a customer status transition.")
    parser.add_argument("customer_id")
    parser.add_argument("to_status")
    parser.add_argument("--reason", default=None)
    parser.add_argument("--actor", default="ops-cli")
    parser.add_argument("--customers-url", default="http://localhost:8001")
    parser.add_argument("--api-key", required=True)
    args = parser.parse_args()

    resp = httpx.post(
        f"{args.customers_url}/customers/{args.customer_id}/status-transition",
        json={"to_status": args.to_status.upper(), "reason": args.reason},
        headers={"x-api-key": args.api_key, "x-actor": args.actor},
        timeout=10.0,
    )
    if resp.status_code >= 400:
        raise SystemExit(f"transition rejected status={resp.status_code} body={resp.text}")
    body = resp.json()
    print(json.dumps({"customer_id": body["customer_id"], "current_status": body["current_status"]}, indent=2))


if __name__ == "__main__":
    main()
