#!/usr/bin/env python3
"""
Generate participant evaluation links for printing QR codes.

Calls the running API's participant batch endpoint and writes one
``label,token,evaluation_url`` row per participant.

Usage:
    cough-survey-links --count 50 --label booth-a --output links.csv
"""
import argparse
import csv
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate participant QR links via the running cough survey API."
    )
    parser.add_argument(
        "--api-url",
        default=os.getenv("COUGH_SURVEY_API_URL", "http://localhost:8000"),
        help="Base URL of the API server (default: http://localhost:8000).",
    )
    parser.add_argument(
        "--admin-token",
        default=os.getenv("ADMIN_TOKEN", ""),
        help="Admin token (default: the ADMIN_TOKEN environment variable).",
    )
    parser.add_argument(
        "--count", type=int, default=10, help="Participants to create (default: 10)."
    )
    parser.add_argument("--label", default=None, help="Label for every participant.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("participant_links.csv"),
        help="Output path for the links file.",
    )
    parser.add_argument(
        "--timeout", type=float, default=10.0, help="Request timeout in seconds."
    )
    return parser.parse_args(argv)


def create_batch(
    client: httpx.Client, count: int, label: Optional[str], admin_token: str
) -> List[dict]:
    """POST /v1/participants/batch and return the created participants."""
    response = client.post(
        "/v1/participants/batch",
        json={"count": count, "label": label},
        headers={"X-Admin-Token": admin_token},
    )
    response.raise_for_status()
    return response.json()["participants"]


def write_links(path: Path, participants: List[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["label", "token", "evaluation_url"])
        for p in participants:
            writer.writerow([p.get("label") or "", p["token"], p["evaluation_url"]])


def main(argv: Optional[List[str]] = None, client: Optional[httpx.Client] = None) -> int:
    args = parse_args(argv)
    if not args.admin_token:
        print("An admin token is required (--admin-token or ADMIN_TOKEN).", file=sys.stderr)
        return 1

    owns_client = client is None
    if client is None:
        client = httpx.Client(base_url=args.api_url.rstrip("/"), timeout=args.timeout)

    try:
        participants = create_batch(client, args.count, args.label, args.admin_token)
    except httpx.HTTPStatusError as exc:
        detail = exc.response.text
        print(
            f"API rejected the request ({exc.response.status_code}): {detail}",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"Failed to reach {args.api_url}: {exc}", file=sys.stderr)
        return 1
    finally:
        if owns_client:
            client.close()

    write_links(args.output, participants)
    print(f"Wrote {len(participants)} links to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
