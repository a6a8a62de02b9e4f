"""
Shared fixtures for the export enrichment ETL tests.

FakeTMDBService serves in-memory exports and detail responses, FakeClock drives
the run clock so rate limiting and the time budget are tested without sleeping.
"""

# Set environment to test mode FIRST, before any imports
import os

os.environ["ENVIRONMENT"] = "test"

import gzip
import json
from collections.abc import Callable
from typing import Any

import pytest

from api.tmdb.exceptions import ExportDownloadError
from api.tmdb.exports import TMDB_EXPORTS_BASE_URL
from api.tmdb.models import EnrichedRecord, MediaType, TMDBDetailsResult
from etl.detail_fetcher import DetailFetcher, RunClock
from etl.enriched_store import EnrichedStore
from etl.tmdb_export_enrichment import ExportEnrichmentETL

_DEFAULT = object()


def pytest_configure(config):
    """Pytest hook to configure test environment before any tests run."""
    os.environ["ENVIRONMENT"] = "test"


def export_line(tmdb_id: int, title: str, popularity: float, media_type: MediaType = MediaType.MOVIE) -> dict:
    return {
        "adult": False,
        "id": tmdb_id,
        media_type.export_title_field: title,
        "popularity": popularity,
    }


class FakeTMDBService:
    """In-memory stand-in for TMDBService."""

    export_base_url = TMDB_EXPORTS_BASE_URL

    def __init__(
        self,
        exports: dict[MediaType, list[dict[str, Any]]] | None = None,
        details: dict[tuple[MediaType, int], Any] | None = None,
        on_details: Callable[[MediaType, int], None] | None = None,
    ):
        self.exports = exports or {}
        self.details = details or {}
        self.on_details = on_details
        self.download_calls: list[str] = []
        self.detail_calls: list[tuple[MediaType, int]] = []

    def require_token(self) -> str:
        return "test_tmdb_token_12345"

    def detail_ids(self, media_type: MediaType) -> list[int]:
        return [tmdb_id for mt, tmdb_id in self.detail_calls if mt is media_type]

    async def download_export(self, url: str) -> bytes:
        self.download_calls.append(url)
        for media_type, lines in self.exports.items():
            if f"/{media_type.export_prefix}_" in url:
                payload = "\n".join(json.dumps(line) for line in lines)
                return gzip.compress(payload.encode("utf-8"))
        raise ExportDownloadError(url, 404)

    async def get_details(self, media_type: MediaType, tmdb_id: int) -> TMDBDetailsResult | None:
        self.detail_calls.append((media_type, tmdb_id))
        if self.on_details:
            self.on_details(media_type, tmdb_id)

        detail = self.details.get((media_type, tmdb_id), _DEFAULT)
        if detail is _DEFAULT:
            return TMDBDetailsResult(
                id=tmdb_id,
                title=f"Movie {tmdb_id}",
                name=f"Show {tmdb_id}",
                release_date="2001-05-04",
                first_air_date="2010-09-01",
                # Detail popularity differs from any export value on purpose
                popularity=0.111,
            )
        if isinstance(detail, Exception):
            raise detail
        if detail is None:
            return None
        return TMDBDetailsResult.model_validate(detail)


class FakeClock:
    """Manually advanced time source for RunClock."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class RecordingStore(EnrichedStore):
    """EnrichedStore that remembers every save."""

    def __init__(self, data_dir):
        super().__init__(data_dir)
        self.saves: list[tuple[MediaType, int, bool]] = []

    def save(self, media_type, records, is_checkpoint=False):
        self.saves.append((media_type, len(records), is_checkpoint))
        return super().save(media_type, records, is_checkpoint)


def make_etl(
    service: FakeTMDBService,
    store: EnrichedStore,
    clock: FakeClock,
    **fetcher_kwargs,
) -> ExportEnrichmentETL:
    run_clock = RunClock(time_fn=clock)
    fetcher = DetailFetcher(service, store, run_clock, sleep=clock.sleep, **fetcher_kwargs)
    return ExportEnrichmentETL(service, store, run_clock, fetcher=fetcher)


def seed_store(store: EnrichedStore, media_type: MediaType, records: list[EnrichedRecord]) -> None:
    store.save(media_type, {r.id: r for r in records}, is_checkpoint=False)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return RecordingStore(tmp_path / "data")
