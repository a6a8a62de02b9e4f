"""
TMDB Export Enrichment ETL - Keep the enriched movie/tv datasets in step with TMDB's daily exports.

For each media type:
    1. Download the daily id export
    2. Load the persisted enriched dataset
    3. Prune ids that left the export (stale)
    4. Fetch details only for ids the dataset doesn't have yet
    5. Refresh popularity from the export for every surviving id
    6. Save the artifact and its gzip copy

A run that hits the time budget checkpoints what it has and reports itself
incomplete; the next run picks up the remaining ids because they are still
missing from the store.

Usage:
    python -m etl.run_enrichment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from api.tmdb.core import TMDBService
from api.tmdb.exports import fetch_bulk_ids
from api.tmdb.models import BulkExportEntry, EnrichedRecord, MediaType, round_popularity
from etl.detail_fetcher import DetailFetcher, FetchOutcome, RunClock
from etl.enriched_store import EnrichedStore
from utils.get_logger import get_logger

logger = get_logger(__name__)

DEFAULT_MEDIA_TYPES = (MediaType.MOVIE, MediaType.TV)


@dataclass
class ReconcileResult:
    """Outcome of reconciling one media type."""

    media_type: str
    total: int = 0
    new_count: int = 0
    stale_count: int = 0
    enriched: int = 0
    errors: int = 0
    complete: bool = True
    fetch: FetchOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "media_type": self.media_type,
            "total": self.total,
            "new_count": self.new_count,
            "stale_count": self.stale_count,
            "enriched": self.enriched,
            "errors": self.errors,
            "complete": self.complete,
            "fetch": self.fetch.to_dict() if self.fetch else None,
        }


@dataclass
class EnrichmentRunStats:
    """Statistics from one enrichment run (all media types)."""

    started_at: datetime | None = None
    completed_at: datetime | None = None
    export_date: str = ""
    results: list[ReconcileResult] = field(default_factory=list)
    timed_out: bool = False

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "export_date": self.export_date,
            "timed_out": self.timed_out,
            "results": [r.to_dict() for r in self.results],
        }


class ExportEnrichmentETL:
    """Reconcile daily exports against the enriched store."""

    def __init__(
        self,
        service: TMDBService,
        store: EnrichedStore,
        clock: RunClock | None = None,
        fetcher: DetailFetcher | None = None,
    ):
        self.service = service
        self.store = store
        self.clock = clock or RunClock()
        self.fetcher = fetcher or DetailFetcher(service, store, self.clock)

    async def fetch_export(
        self, media_type: MediaType, export_date: date | None = None
    ) -> list[BulkExportEntry]:
        return await fetch_bulk_ids(self.service, media_type, export_date)

    @staticmethod
    def prune_stale(records: dict[int, EnrichedRecord], export_ids: set[int]) -> int:
        """Delete ids that are no longer exported. Returns how many were removed."""
        stale_ids = [tmdb_id for tmdb_id in records if tmdb_id not in export_ids]
        for tmdb_id in stale_ids:
            del records[tmdb_id]
        return len(stale_ids)

    @staticmethod
    def refresh_popularity(
        records: dict[int, EnrichedRecord], entries: list[BulkExportEntry]
    ) -> int:
        """The export's popularity is newer than any detail response; overwrite it."""
        updated = 0
        for entry in entries:
            record = records.get(entry.id)
            if record is not None:
                record.popularity = round_popularity(entry.popularity)
                updated += 1
        return updated

    async def reconcile(
        self, media_type: MediaType, export_date: date | None = None
    ) -> ReconcileResult:
        """
        Run one reconciliation pass for a media type.

        Returns:
            ReconcileResult; complete=False when the time budget cut the fetch short

        Raises:
            ExportDownloadError: the daily export could not be downloaded
        """
        logger.info(f"=== Enriching {media_type.plural} ===")

        export_entries = await self.fetch_export(media_type, export_date)
        export_ids = {entry.id for entry in export_entries}

        records = self.store.load(media_type)

        # Export order, deduplicated
        new_ids = list(dict.fromkeys(e.id for e in export_entries if e.id not in records))
        logger.info(f"Found {len(new_ids):,} new IDs to fetch")

        # Prune before fetching so the stale count reflects this export snapshot
        stale_count = self.prune_stale(records, export_ids)
        if stale_count:
            logger.info(f"Removed {stale_count:,} stale IDs")

        result = ReconcileResult(
            media_type=media_type.value, new_count=len(new_ids), stale_count=stale_count
        )

        if new_ids:
            outcome = await self.fetcher.fetch_details(media_type, new_ids, records)
            result.fetch = outcome
            result.enriched = outcome.enriched
            result.errors = outcome.errors

            if outcome.truncated:
                self.store.save(media_type, records, is_checkpoint=True)
                result.total = len(records)
                result.complete = False
                logger.warning(
                    f"Saved progress for {media_type.plural}: {outcome.completed:,}/{len(new_ids):,} "
                    f"new IDs done, {outcome.remaining:,} left for the next run"
                )
                return result

        self.refresh_popularity(records, export_entries)

        self.store.save(media_type, records, is_checkpoint=False)
        result.total = len(records)
        return result


async def run_export_enrichment(
    media_types: tuple[MediaType, ...] | list[MediaType] = DEFAULT_MEDIA_TYPES,
    data_dir: str | Path = "data",
    export_date: date | None = None,
    service: TMDBService | None = None,
    clock: RunClock | None = None,
    stats: EnrichmentRunStats | None = None,
) -> EnrichmentRunStats:
    """
    Enrich each media type in order, stopping after the first incomplete one.

    Args:
        media_types: Media types to process, in order (default: movie then tv)
        data_dir: Directory holding the enriched artifacts
        export_date: Export file date (default: yesterday)
        service: TMDB service; a new one is created (and closed) when omitted
        clock: Run clock for the time budget (default: starts now)
        stats: Optional pre-created stats object

    Raises:
        MissingCredentialError: no TMDB access token
        ExportDownloadError: an export could not be downloaded
    """
    stats = stats or EnrichmentRunStats()
    stats.started_at = datetime.now()
    stats.export_date = export_date.isoformat() if export_date else ""

    owns_service = service is None
    service = service or TMDBService()
    service.require_token()

    etl = ExportEnrichmentETL(service, EnrichedStore(data_dir), clock or RunClock())

    try:
        for media_type in media_types:
            result = await etl.reconcile(media_type, export_date)
            stats.results.append(result)
            if not result.complete:
                stats.timed_out = True
                break
    finally:
        if owns_service:
            await service.close()

    stats.completed_at = datetime.now()
    return stats
