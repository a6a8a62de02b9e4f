"""
TMDB Export Models - Pydantic models for the daily id exports and the enriched dataset.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MediaType(str, Enum):
    """
    Item types with a daily TMDB export.
    Values match the TMDB detail endpoint path segment.
    """

    MOVIE = "movie"
    TV = "tv"

    @property
    def export_prefix(self) -> str:
        return "movie_ids" if self is MediaType.MOVIE else "tv_series_ids"

    @property
    def export_title_field(self) -> str:
        return "original_title" if self is MediaType.MOVIE else "original_name"

    @property
    def title_field(self) -> str:
        return "title" if self is MediaType.MOVIE else "name"

    @property
    def date_field(self) -> str:
        return "release_date" if self is MediaType.MOVIE else "first_air_date"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


def round_popularity(value: float | None) -> float:
    return round(float(value or 0), 2)


def parse_year(date_str: str | None) -> int | None:
    """Year from a TMDB date string (YYYY-MM-DD), None when missing or malformed."""
    year = (date_str or "")[:4]
    return int(year) if len(year) == 4 and year.isdigit() else None


# ============================================================================
# Raw TMDB models
# ============================================================================


class BulkExportEntry(BaseModel):
    """One line of a daily id export, after adult filtering."""

    id: int
    title: str = ""
    popularity: float = Field(default=0.0, ge=0)

    @classmethod
    def from_export_line(cls, data: dict[str, Any], media_type: MediaType) -> BulkExportEntry:
        return cls(
            id=data["id"],
            title=data.get(media_type.export_title_field) or "",
            popularity=data.get("popularity") or 0.0,
        )


class TMDBDetailsResult(BaseModel):
    """The subset of /movie/{id} and /tv/{id} that the enrichment uses."""

    id: int | None = None
    title: str | None = None
    name: str | None = None
    release_date: str | None = None
    first_air_date: str | None = None
    popularity: float | None = 0.0


# ============================================================================
# Enriched dataset
# ============================================================================


class EnrichedRecord(BaseModel):
    """
    Persisted enrichment for one id.
    Serialized with short keys (i, t, y, p) to keep the artifact small.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="i")
    title: str = Field(default="", alias="t")
    year: int | None = Field(default=None, alias="y")
    popularity: float = Field(default=0.0, alias="p")

    @classmethod
    def from_details(
        cls, tmdb_id: int, details: TMDBDetailsResult, media_type: MediaType
    ) -> EnrichedRecord:
        """Normalize a detail response; keyed by the id that was requested."""
        title = getattr(details, media_type.title_field) or ""
        return cls(
            id=tmdb_id,
            title=title,
            year=parse_year(getattr(details, media_type.date_field)),
            popularity=round_popularity(details.popularity),
        )

    def to_compact(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
