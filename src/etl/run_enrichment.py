#!/usr/bin/env python3
"""
Daily runner for the TMDB export enrichment.

Designed to be triggered once a day (cron, CI schedule). A run that reaches the
time budget exits 0 after checkpointing; trigger it again to continue.

Usage:
    python -m etl.run_enrichment                       # movies, then tv
    python -m etl.run_enrichment --media-type movie    # movies only
    python -m etl.run_enrichment --date 2025-12-07     # specific export file
    python -m etl.run_enrichment --data-dir /srv/tmdb  # artifact directory

Environment variables (required):
    TMDB_ACCESS_TOKEN   - TMDB API read access token (bearer)

Environment variables (optional):
    TMDB_DATA_DIR       - Artifact directory (default: data)
    ENV_FILE            - dotenv file to load (default: config/local.env)
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime

from adapters.config import get_data_dir, load_env
from api.tmdb.auth import Auth
from api.tmdb.exceptions import MissingCredentialError
from api.tmdb.models import MediaType
from etl.tmdb_export_enrichment import (
    DEFAULT_MEDIA_TYPES,
    EnrichmentRunStats,
    run_export_enrichment,
)
from utils.get_logger import get_logger, set_level

logger = get_logger(__name__)


def parse_date(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD format.

    Raises:
        ValueError: If date string is invalid
    """
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD") from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Enrich TMDB daily exports with year and popularity")
    parser.add_argument(
        "--media-type",
        "-m",
        choices=["movie", "tv", "all"],
        default="all",
        help="Media type to enrich (default: all, movies first)",
    )
    parser.add_argument(
        "--date",
        "-d",
        type=str,
        help="Export date in YYYY-MM-DD format (default: yesterday)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        help="Directory for the enriched artifacts (default: $TMDB_DATA_DIR or data/)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging (per-id failures)",
    )
    args = parser.parse_args(argv)

    if args.date:
        try:
            args.date = parse_date(args.date)
        except ValueError as e:
            parser.error(str(e))
    return args


def selected_media_types(choice: str) -> tuple[MediaType, ...]:
    if choice == "all":
        return DEFAULT_MEDIA_TYPES
    return (MediaType(choice),)


def log_summary(stats: EnrichmentRunStats) -> None:
    logger.info("=" * 60)
    logger.info("Summary")
    logger.info("=" * 60)
    for result in stats.results:
        logger.info(
            f"{result.media_type:<6} {result.total:,} total, {result.new_count:,} new, "
            f"{result.stale_count:,} removed, {result.errors:,} errors"
        )
    logger.info(f"Duration: {stats.duration_seconds:.1f}s")


async def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)
    load_env()

    if args.verbose:
        set_level(logging.DEBUG)

    logger.info("TMDB Export Enrichment")
    logger.info(f"Date: {datetime.now().isoformat()}")

    try:
        Auth().require_token()
    except MissingCredentialError as e:
        logger.error(f"Error: {e}")
        return 1

    try:
        stats = await run_export_enrichment(
            media_types=selected_media_types(args.media_type),
            data_dir=get_data_dir(args.data_dir),
            export_date=args.date,
        )
    except Exception as e:
        logger.error(f"Enrichment failed: {e}", exc_info=True)
        return 1

    log_summary(stats)
    if stats.timed_out:
        logger.info("Stopped at the time budget; re-run to continue from the checkpoint")
    else:
        logger.info("Done!")
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
