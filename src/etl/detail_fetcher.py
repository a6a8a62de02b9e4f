"""
Detail Fetcher - Rate-limited, batch-concurrent TMDB detail lookups.

Ids are processed in batches of BATCH_SIZE. Every lookup in a batch runs
concurrently; the next batch starts only after the whole batch has resolved.
Results are written straight into the caller's records dict so a checkpoint
taken between batches sees every completed record.

Throughput is capped at REQUESTS_PER_SECOND at batch granularity: a batch that
finished faster than BATCH_SIZE / REQUESTS_PER_SECOND seconds is followed by a
sleep for the remainder.

The run clock is checked after every batch. Once MAX_RUNTIME_SECONDS has passed
the fetcher stops and reports a truncated outcome; the caller checkpoints and
the next run resumes from the persisted store.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from api.tmdb.models import EnrichedRecord, MediaType, TMDBDetailsResult
from etl.enriched_store import EnrichedStore
from utils.get_logger import get_logger

logger = get_logger(__name__)

BATCH_SIZE = 100
# TMDB allows ~50 req/sec, stay under it
REQUESTS_PER_SECOND = 40
CHECKPOINT_INTERVAL = 50_000
# Leaves 30 minutes of a 6 hour execution ceiling for publishing the artifacts
MAX_RUNTIME_SECONDS = 5.5 * 60 * 60
PROGRESS_LOG_INTERVAL = 1_000


class DetailsService(Protocol):
    async def get_details(self, media_type: MediaType, tmdb_id: int) -> TMDBDetailsResult | None: ...


class RunClock:
    """Monotonic clock anchored at the start of a run."""

    def __init__(self, time_fn: Callable[[], float] = time.monotonic):
        self._time_fn = time_fn
        self.started_at = time_fn()

    def now(self) -> float:
        return self._time_fn()

    def elapsed(self) -> float:
        return self._time_fn() - self.started_at


@dataclass
class FetchOutcome:
    """Tally of one fetch pass."""

    requested: int = 0
    completed: int = 0
    enriched: int = 0
    errors: int = 0
    not_found: int = 0
    truncated: bool = False

    @property
    def remaining(self) -> int:
        return self.requested - self.completed

    def to_dict(self) -> dict[str, Any]:
        return {
            "requested": self.requested,
            "completed": self.completed,
            "enriched": self.enriched,
            "errors": self.errors,
            "not_found": self.not_found,
            "truncated": self.truncated,
        }


class DetailFetcher:
    """Fetch details for new ids into an engine-owned records dict."""

    def __init__(
        self,
        service: DetailsService,
        store: EnrichedStore,
        clock: RunClock | None = None,
        batch_size: int = BATCH_SIZE,
        requests_per_second: float = REQUESTS_PER_SECOND,
        checkpoint_interval: int = CHECKPOINT_INTERVAL,
        max_runtime_seconds: float = MAX_RUNTIME_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        self.service = service
        self.store = store
        self.clock = clock or RunClock()
        self.batch_size = batch_size
        self.requests_per_second = requests_per_second
        self.checkpoint_interval = checkpoint_interval
        self.max_runtime_seconds = max_runtime_seconds
        self._sleep = sleep or asyncio.sleep

    @property
    def min_batch_seconds(self) -> float:
        return self.batch_size / self.requests_per_second

    def time_budget_exceeded(self) -> bool:
        return self.clock.elapsed() > self.max_runtime_seconds

    def _apply_batch(
        self,
        media_type: MediaType,
        batch: Sequence[int],
        results: list[Any],
        records: dict[int, EnrichedRecord],
        outcome: FetchOutcome,
    ) -> None:
        for tmdb_id, result in zip(batch, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                outcome.errors += 1
                logger.debug(f"Detail fetch failed for {media_type.value} {tmdb_id}: {result!r}")
                continue

            if result is None:
                # Not found counts toward the error tally as well
                outcome.not_found += 1
                outcome.errors += 1
                continue

            records[tmdb_id] = EnrichedRecord.from_details(tmdb_id, result, media_type)
            outcome.enriched += 1

    async def fetch_details(
        self, media_type: MediaType, ids: Sequence[int], records: dict[int, EnrichedRecord]
    ) -> FetchOutcome:
        """
        Fetch details for ids, writing each success into records.

        Per-id failures and 404s are counted, never raised.

        Returns:
            FetchOutcome; truncated=True when the run's time budget ran out
        """
        outcome = FetchOutcome(requested=len(ids))
        last_checkpoint = 0
        total_batches = (len(ids) + self.batch_size - 1) // self.batch_size

        logger.info(
            f"Fetching details for {len(ids):,} new {media_type.value} IDs "
            f"({total_batches:,} batches of {self.batch_size})"
        )

        for start in range(0, len(ids), self.batch_size):
            batch = ids[start : start + self.batch_size]
            batch_start = self.clock.now()

            results = await asyncio.gather(
                *(self.service.get_details(media_type, tmdb_id) for tmdb_id in batch),
                return_exceptions=True,
            )
            self._apply_batch(media_type, batch, results, records, outcome)
            outcome.completed += len(batch)

            # Rate limiting - a batch never takes less than batch_size / rps seconds
            batch_elapsed = self.clock.now() - batch_start
            if batch_elapsed < self.min_batch_seconds:
                await self._sleep(self.min_batch_seconds - batch_elapsed)

            if outcome.completed % PROGRESS_LOG_INTERVAL == 0 or outcome.completed == len(ids):
                pct = outcome.completed / len(ids) * 100
                logger.info(
                    f"  Progress: {outcome.completed:,}/{len(ids):,} ({pct:.1f}%) - {outcome.errors:,} errors"
                )

            if outcome.completed - last_checkpoint >= self.checkpoint_interval:
                self.store.save(media_type, records, is_checkpoint=True)
                last_checkpoint = outcome.completed

            if outcome.completed < len(ids) and self.time_budget_exceeded():
                outcome.truncated = True
                logger.warning(
                    f"Time budget of {self.max_runtime_seconds / 3600:.1f}h reached after "
                    f"{outcome.completed:,}/{len(ids):,} {media_type.value} IDs"
                )
                break

        logger.info(
            f"Fetched details for {outcome.completed:,} IDs "
            f"({outcome.enriched:,} enriched, {outcome.errors:,} errors, {outcome.not_found:,} not found)"
        )
        return outcome
