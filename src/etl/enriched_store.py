"""
Enriched Store - Persist the per-type enriched dataset between runs.

Artifacts, per media type:
    {data_dir}/tmdb-movies-enriched.json      primary artifact (every save)
    {data_dir}/tmdb-movies-enriched.json.gz   distribution copy (final saves only)

Artifact layout:
    {"generated_at": "...", "count": 2, "entries": [{"i": 550, "t": "Fight Club", "y": 1999, "p": 61.4}, ...]}
"""

import gzip
import json
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from api.tmdb.models import EnrichedRecord, MediaType
from utils.get_logger import get_logger

logger = get_logger(__name__)


class EnrichedStore:
    """Load and save the id -> EnrichedRecord mapping for each media type."""

    def __init__(self, data_dir: str | Path = "data"):
        self.data_dir = Path(data_dir)

    def artifact_path(self, media_type: MediaType) -> Path:
        return self.data_dir / f"tmdb-{media_type.plural}-enriched.json"

    def compressed_path(self, media_type: MediaType) -> Path:
        path = self.artifact_path(media_type)
        return path.with_name(path.name + ".gz")

    def load(self, media_type: MediaType) -> dict[int, EnrichedRecord]:
        """Load the persisted mapping; empty on a first run."""
        path = self.artifact_path(media_type)
        if not path.exists():
            logger.info(f"No enriched {media_type.value} data at {path}, starting empty")
            return {}

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        records: dict[int, EnrichedRecord] = {}
        for entry in data.get("entries", []):
            record = EnrichedRecord.model_validate(entry)
            records[record.id] = record

        logger.info(f"Loaded {len(records):,} existing enriched {media_type.value} entries")
        return records

    @staticmethod
    def build_artifact(records: dict[int, EnrichedRecord]) -> dict[str, Any]:
        # Sorted by popularity desc: popular titles first compresses better
        entries = sorted(records.values(), key=lambda r: r.popularity, reverse=True)
        return {
            "generated_at": datetime.now(UTC).isoformat(),
            "count": len(entries),
            "entries": [record.to_compact() for record in entries],
        }

    @staticmethod
    def _write_atomic(path: Path, payload: bytes) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(payload)
        os.replace(tmp_path, path)

    def save(
        self, media_type: MediaType, records: dict[int, EnrichedRecord], is_checkpoint: bool = False
    ) -> Path:
        """
        Overwrite the primary artifact with the full mapping.

        Final saves (is_checkpoint=False) also write the gzip copy.

        Returns:
            Path of the primary artifact
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.artifact_path(media_type)

        artifact = self.build_artifact(records)
        payload = json.dumps(artifact, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self._write_atomic(path, payload)

        if is_checkpoint:
            logger.info(f"[Checkpoint] Saved {artifact['count']:,} {media_type.value} entries")
            return path

        logger.info(f"Saved {artifact['count']:,} enriched {media_type.value} entries to {path}")
        gzipped = gzip.compress(payload)
        self._write_atomic(self.compressed_path(media_type), gzipped)
        logger.info(f"Gzipped size: {len(gzipped) / 1024 / 1024:.2f} MB")
        return path
