#!/usr/bin/env python
"""Venue ingestion CLI.

Resolve venue names through the places directory and upsert them into the
venue table.

Usage:
    # Preview what would happen
    python scripts/ingest_venues.py --input venues.json --dry-run

    # Merge into existing venues without prompts
    python scripts/ingest_venues.py --input venues.json --update-existing --confirm

    # Review every venue before it is written
    python scripts/ingest_venues.py --input venues.txt --individual
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from barcompass.core.config import get_settings
from barcompass.core.database import dispose_engine, get_session_maker
from barcompass.core.logging import configure_logging
from barcompass.features.ingestion.confirmation import CliConfirmation, format_summary
from barcompass.features.ingestion.inputs import InputFileError, read_input_file
from barcompass.features.ingestion.orchestrator import BatchOrchestrator, IngestionAborted
from barcompass.features.ingestion.schemas import IngestionReport
from barcompass.features.places.client import PlacesClient, PlacesConfigError, parse_location
from barcompass.features.venues.repository import VenueRepository
from barcompass.features.venues.schemas import ConflictResolution
from barcompass.features.venues.upsert import UpsertEngine


def parse_location_arg(value: str) -> str:
    """Validate a ``lat,lng`` argument.

    Raises:
        argparse.ArgumentTypeError: If the location is malformed.
    """
    try:
        parse_location(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return value


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="BarCompass Venue Ingestion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input formats:
  JSON  [{"name": "Bar X", "searchQuery": "Bar X Central", "tags": ["speakeasy"]}, "Bar Y"]
  TXT   one venue name per line; blank lines and # comments are ignored

Examples:
  ingest_venues.py --input venues.json --dry-run
  ingest_venues.py --input venues.json --resolution replace --confirm
  ingest_venues.py --input venues.txt --individual --output report.json
        """,
    )

    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a .json or .txt file of venue names",
    )
    parser.add_argument(
        "--resolution",
        choices=[r.value for r in ConflictResolution],
        help="Conflict policy for existing venues (default: skip)",
    )
    parser.add_argument(
        "--update-existing",
        action="store_true",
        help="Shortcut for --resolution merge",
    )
    parser.add_argument(
        "--location",
        type=parse_location_arg,
        help="Search bias as 'lat,lng' (default: from settings)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Seconds between venues (default: from settings)",
    )

    # Confirmation
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Proceed without prompting",
    )
    parser.add_argument(
        "--individual",
        action="store_true",
        help="Prompt for every venue instead of once per batch",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and plan only, write nothing",
    )

    # Output
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the JSON ingestion report to this path",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any venue failed",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def resolve_policy(args: argparse.Namespace) -> ConflictResolution:
    """Pick the conflict policy from --resolution / --update-existing."""
    if args.resolution:
        return ConflictResolution(args.resolution)
    if args.update_existing:
        return ConflictResolution.MERGE
    return ConflictResolution.SKIP


def print_report(report: IngestionReport) -> None:
    """Print a human-readable report."""
    print()
    print(f"Run {report.run_id} ({report.resolution.value})")
    print("-" * 40)
    print(f"  Planned:     {len(report.planned):>6}")
    print(f"  Unresolved:  {len(report.unresolved):>6}")
    for item in report.unresolved:
        reason = f"{item.reason}: {item.error}" if item.error else item.reason
        print(f"    - {item.name} ({reason})")

    if report.dry_run:
        print()
        print("DRY RUN - No venues were written")
        for planned in report.planned:
            print(f"  {planned.proposed_action.value:>6}  {planned.name} ({planned.external_id})")
    elif report.aborted:
        print()
        print("Batch declined - No venues were written")
    elif report.result is not None:
        print()
        for line in format_summary(report.result.summary):
            print(f"  {line}")
        for outcome in report.result.results:
            if outcome.error is not None:
                print(f"    ! {outcome.external_id}: {outcome.error.message}")

    print("-" * 40)
    print(f"  Duration: {report.duration_ms / 1000:.1f}s")
    print()


async def run_ingest(args: argparse.Namespace) -> int:
    """Run one ingestion pass."""
    settings = get_settings()

    # Safety check for production
    if settings.is_production and not args.confirm and not args.dry_run:
        print("ERROR: --confirm flag required in production.")
        print("Use --dry-run to preview or --confirm to proceed.")
        return 1

    try:
        inputs = read_input_file(args.input)
    except InputFileError as e:
        print(f"ERROR: {e}")
        return 1

    resolution = resolve_policy(args)
    prompts = None if args.confirm else CliConfirmation()
    print(f"Loaded {len(inputs)} venue(s) from {args.input}")
    print(f"Conflict resolution: {resolution.value}")
    print()

    session_maker = get_session_maker()

    try:
        async with PlacesClient(settings=settings) as client, session_maker() as session:
            orchestrator = BatchOrchestrator(
                UpsertEngine(VenueRepository(session)),
                client=client,
                item_delay=args.delay,
                settings=settings,
            )
            report = await orchestrator.ingest(
                inputs,
                resolution,
                location=args.location,
                confirm=prompts.confirm_venue if prompts and args.individual else None,
                confirm_batch=prompts.confirm_batch if prompts and not args.individual else None,
                dry_run=args.dry_run,
            )
            usage = client.usage_stats()
    except PlacesConfigError as e:
        print(f"ERROR: {e}")
        print("Run scripts/diagnose_places_api.py for setup guidance.")
        return 1
    except IngestionAborted as e:
        print()
        print(f"Quit after {e.processed} venue(s); earlier writes were kept.")
        return 1
    finally:
        await dispose_engine()

    print_report(report)
    print(
        f"Places API: {usage.request_count} request(s), "
        f"{usage.requests_per_second:.2f} req/s"
    )

    if args.output:
        args.output.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        print(f"Report written to {args.output}")

    if args.strict and report.result is not None and report.result.summary.has_errors:
        return 1
    return 0


async def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)

    print("BarCompass - Venue Ingestion")
    print("=" * 45)

    return await run_ingest(args)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
