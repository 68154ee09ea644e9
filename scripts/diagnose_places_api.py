#!/usr/bin/env python
"""Diagnose places directory configuration.

Checks that an API key is configured and performs one test search, printing
guidance for the common failure statuses.

Usage:
    python scripts/diagnose_places_api.py
    python scripts/diagnose_places_api.py --query "Quinary Hong Kong"
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from barcompass.core.config import get_settings
from barcompass.features.places.backoff import BackoffExecutor, BackoffPolicy
from barcompass.features.places.client import PlacesApiError, PlacesClient

GUIDANCE: dict[str, list[str]] = {
    "REQUEST_DENIED": [
        "The key was rejected.",
        "  1. Enable the Places API and Time Zone API for the key's project",
        "  2. Check API restrictions on the key (HTTP referrer keys do not work server-side)",
        "  3. Confirm billing is enabled for the project",
    ],
    "OVER_QUERY_LIMIT": [
        "Quota exceeded.",
        "  1. Check usage and quotas in the cloud console",
        "  2. Lower PLACES_RATE_LIMIT_REQUESTS or raise INGEST_ITEM_DELAY_SECONDS",
    ],
    "INVALID_REQUEST": [
        "The request was malformed.",
        "  1. Check PLACES_DEFAULT_LOCATION is 'lat,lng'",
        "  2. Check PLACES_BASE_URL points at the API root",
    ],
}

HTTP_STATUS_HINTS = {
    400: "INVALID_REQUEST",
    403: "REQUEST_DENIED",
    429: "OVER_QUERY_LIMIT",
}


def mask_key(key: str) -> str:
    """Show only the last four characters of a key."""
    if len(key) <= 4:
        return "*" * len(key)
    return f"{'*' * (len(key) - 4)}{key[-4:]}"


async def diagnose(query: str) -> int:
    """Check the key and run one search."""
    settings = get_settings()

    print("BarCompass - Places API Diagnostics")
    print("=" * 45)
    print(f"Environment: {settings.app_env}")
    print(f"Base URL:    {settings.places_base_url}")
    print(
        f"Rate limit:  {settings.places_rate_limit_requests} requests / "
        f"{settings.places_rate_limit_window_seconds}s"
    )
    print()

    if settings.google_places_api_key:
        print(f"[OK] GOOGLE_PLACES_API_KEY set ({mask_key(settings.google_places_api_key)})")
    elif settings.google_maps_api_key:
        print(f"[OK] GOOGLE_MAPS_API_KEY set ({mask_key(settings.google_maps_api_key)})")
        print("     GOOGLE_PLACES_API_KEY is preferred when both are available")
    else:
        print("[FAIL] No API key configured")
        print()
        print("Set GOOGLE_PLACES_API_KEY (or GOOGLE_MAPS_API_KEY) in the .env file.")
        return 1

    # One attempt only so the failure status is reported as-is
    backoff = BackoffExecutor(BackoffPolicy(max_retries=0))

    async with PlacesClient(settings=settings, backoff=backoff) as client:
        try:
            results = await client.text_search(query, location=settings.places_default_location)
        except PlacesApiError as e:
            print(f"[FAIL] Test search failed: {e}")
            status = e.api_status or HTTP_STATUS_HINTS.get(e.http_status or 0)
            print()
            for line in GUIDANCE.get(status or "", ["Check network access to the API host."]):
                print(line)
            return 1

    print(f"[OK] Test search for {query!r} returned {len(results)} result(s)")
    for venue in results[:3]:
        print(f"     - {venue.name} ({venue.external_id})")

    print()
    print("Places API check completed successfully!")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="BarCompass Places API diagnostics")
    parser.add_argument(
        "--query",
        default="cocktail bar Central Hong Kong",
        help="Test search query (default: cocktail bar Central Hong Kong)",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(diagnose(args.query)))


if __name__ == "__main__":
    main()
