"""
TMDB Daily Exports - Download and decode the daily id exports.

The files are available at:
    https://files.tmdb.org/p/exports/movie_ids_MM_DD_YYYY.json.gz
    https://files.tmdb.org/p/exports/tv_series_ids_MM_DD_YYYY.json.gz

Each line in the decompressed file is a JSON object, e.g.
    {"adult":false,"id":550,"original_title":"Fight Club","popularity":61.4,"video":false}

Exports are generated overnight, so a run uses the previous day's file.
"""

from __future__ import annotations

import gzip
import json
from datetime import date, timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from api.tmdb.models import BulkExportEntry, MediaType
from utils.get_logger import get_logger

if TYPE_CHECKING:
    from api.tmdb.core import TMDBService

logger = get_logger(__name__)

TMDB_EXPORTS_BASE_URL = "https://files.tmdb.org/p/exports"


def get_export_date(today: date | None = None) -> date:
    """The export date for a run: the day before the run date."""
    return (today or date.today()) - timedelta(days=1)


def build_export_url(
    media_type: MediaType, export_date: date, base_url: str = TMDB_EXPORTS_BASE_URL
) -> str:
    # TMDB uses MM_DD_YYYY format
    date_str = export_date.strftime("%m_%d_%Y")
    return f"{base_url}/{media_type.export_prefix}_{date_str}.json.gz"


def parse_export(payload: bytes, media_type: MediaType) -> list[BulkExportEntry]:
    """
    Decompress and parse an export payload.

    Blank and malformed lines are dropped, as are entries flagged adult.
    """
    decompressed = gzip.decompress(payload)
    entries = []
    # NDJSON lines end in "\n" only; titles may hold U+2028 and other separators
    for line in decompressed.decode("utf-8", errors="replace").split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
            if not isinstance(record, dict) or record.get("adult"):
                continue
            entries.append(BulkExportEntry.from_export_line(record, media_type))
        except (ValueError, KeyError, TypeError, ValidationError):
            continue
    return entries


async def fetch_bulk_ids(
    service: TMDBService, media_type: MediaType, export_date: date | None = None
) -> list[BulkExportEntry]:
    """
    Download and parse the daily export for a media type.

    Raises:
        ExportDownloadError: the export host returned a non-200 status
    """
    export_date = export_date or get_export_date()
    url = build_export_url(media_type, export_date, service.export_base_url or TMDB_EXPORTS_BASE_URL)
    logger.info(f"Downloading {media_type.value} export from {url}")

    payload = await service.download_export(url)
    logger.info(f"Downloaded {len(payload):,} bytes (compressed)")

    entries = parse_export(payload, media_type)
    logger.info(f"Parsed {len(entries):,} {media_type.value} entries")
    return entries
