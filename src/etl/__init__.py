"""
ETL Module - Incremental enrichment of TMDB daily exports.

This module provides:
- Enriched Store: Persist the per-type dataset and its gzip copy
- Detail Fetcher: Rate-limited batch lookups with checkpoints and a time budget
- Export Enrichment ETL: Reconcile the daily export against the store
"""

from etl.detail_fetcher import DetailFetcher, FetchOutcome, RunClock
from etl.enriched_store import EnrichedStore
from etl.tmdb_export_enrichment import (
    EnrichmentRunStats,
    ExportEnrichmentETL,
    ReconcileResult,
    run_export_enrichment,
)

# Note: the CLI (etl.run_enrichment) is not imported here
# Run it directly: python -m etl.run_enrichment

__all__ = [
    # Store
    "EnrichedStore",
    # Fetcher
    "DetailFetcher",
    "FetchOutcome",
    "RunClock",
    # Reconciliation
    "ExportEnrichmentETL",
    "EnrichmentRunStats",
    "ReconcileResult",
    "run_export_enrichment",
]
