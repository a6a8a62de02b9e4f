"""
TMDB Core Service - The HTTP seam for export enrichment.
Detail lookups against the REST API and raw downloads from the export host.
"""

from __future__ import annotations

from typing import Any, cast

from api.tmdb.auth import Auth
from api.tmdb.exceptions import DetailRequestError, ExportDownloadError
from api.tmdb.models import MediaType, TMDBDetailsResult
from utils.base_api_client import BaseAPIClient
from utils.get_logger import get_logger

logger = get_logger(__name__)


class TMDBService(Auth, BaseAPIClient):
    """
    Core TMDB service for detail lookups and export downloads.
    """

    def __init__(self, access_token: str | None = None):
        """Initialize TMDB service; the token falls back to the environment."""
        super().__init__(access_token)

    async def _make_request(self, endpoint: str) -> tuple[dict[str, Any] | None, int]:
        """Make async HTTP request to TMDB API.

        Args:
            endpoint: API endpoint (e.g., 'movie/123')

        Returns:
            (JSON response dict or None, HTTP status)
        """
        url = f"{self.base_url}/{endpoint}"
        result = await self._core_async_request(
            url=url,
            headers=self.auth_headers(),
            timeout=60,
            return_status_code=True,
        )
        return cast(tuple[dict[str, Any] | None, int], result)

    async def get_details(self, media_type: MediaType, tmdb_id: int) -> TMDBDetailsResult | None:
        """Fetch /movie/{id} or /tv/{id}.

        Returns None when TMDB has no such item (404).

        Raises:
            DetailRequestError: any other non-200 response
            aiohttp.ClientError / TimeoutError: transport failure
        """
        endpoint = f"{media_type.value}/{tmdb_id}"
        data, status = await self._make_request(endpoint)
        if status == 404:
            return None
        if status != 200 or data is None:
            raise DetailRequestError(endpoint, status)
        return TMDBDetailsResult.model_validate(data)

    async def download_export(self, url: str) -> bytes:
        """Download a compressed export file from the export host (no auth).

        Raises:
            ExportDownloadError: non-200 response
        """
        payload, status = await self._core_async_download(url)
        if payload is None:
            raise ExportDownloadError(url, status)
        return payload
