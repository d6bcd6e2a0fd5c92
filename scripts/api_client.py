"""Lightweight REST client for the dynval API."""

from __future__ import annotations

import argparse
import json

import httpx


def _player_ids(raw: str) -> list[str]:
    ids = [part.strip() for part in raw.split(",") if part.strip()]
    if not ids:
        raise SystemExit("--batch expects a comma-separated list of player ids")
    return ids


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the dynval REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--run", action="store_true", help="Trigger a valuation run before reading values")
    parser.add_argument("--date", help="As-of date (YYYY-MM-DD) for --run or the value listing")
    parser.add_argument("--limit", type=int, default=25, help="Number of values to list")
    parser.add_argument("--batch", metavar="IDS", help="Comma-separated player ids for a batch lookup")
    parser.add_argument("--timeout", type=float, default=1800.0, help="Request timeout in seconds")
    args = parser.parse_args()

    params = {"date": args.date} if args.date else {}
    with httpx.Client(base_url=args.base_url, timeout=args.timeout) as client:
        if args.run:
            resp = client.post("/cron/dynasty", params=params)
            body = resp.json()
            if resp.status_code != 200 or not body.get("ok"):
                raise SystemExit(f"valuation run failed: {body.get('error', resp.status_code)}")
            print(f"Run complete for {body['as_of_date']}: {body['valid_values']} valid values")

        if args.batch:
            resp = client.post("/dynasty/values/batch", json={"player_ids": _player_ids(args.batch)})
            if resp.status_code == 404:
                raise SystemExit("no dynasty values stored yet")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        resp = client.get("/dynasty/values", params={**params, "limit": args.limit})
        resp.raise_for_status()
        print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
