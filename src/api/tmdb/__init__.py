"""
TMDB Services - Detail lookups and daily id exports for the enrichment ETL.
"""

from api.tmdb.core import TMDBService
from api.tmdb.exceptions import (
    DetailRequestError,
    ExportDownloadError,
    MissingCredentialError,
    TMDBExportError,
)
from api.tmdb.exports import build_export_url, fetch_bulk_ids, get_export_date, parse_export
from api.tmdb.models import (
    BulkExportEntry,
    EnrichedRecord,
    MediaType,
    TMDBDetailsResult,
)

__all__ = [
    # Service
    "TMDBService",
    # Exports
    "build_export_url",
    "fetch_bulk_ids",
    "get_export_date",
    "parse_export",
    # Models
    "BulkExportEntry",
    "EnrichedRecord",
    "MediaType",
    "TMDBDetailsResult",
    # Errors
    "DetailRequestError",
    "ExportDownloadError",
    "MissingCredentialError",
    "TMDBExportError",
]
