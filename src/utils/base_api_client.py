"""
Base API Client - Shared request handling over a single aiohttp session.
API services inherit from this and call _core_async_request / _core_async_download.
"""

import asyncio
import random
from typing import Any

import aiohttp

from utils.get_logger import get_logger

logger = get_logger(__name__)


class BaseAPIClient:
    """
    Base class for API clients with shared request handling.
    Owns one lazily created ClientSession; use as an async context manager
    (or call close()) so the connection pool is released.
    """

    _session: aiohttp.ClientSession | None = None

    # Retry-After fallback and cap on 429 retries per request
    _default_retry_after = 2
    _max_rate_limit_retries = 3

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @staticmethod
    async def _drain(response: aiohttp.ClientResponse) -> None:
        """Consume the body so the pooled connection can be reused."""
        try:
            await response.read()
        except aiohttp.ClientError as e:
            logger.debug(f"Discarding unread response body for {response.url}: {e!r}")

    async def _core_async_request(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        timeout: int = 60,
        return_status_code: bool = False,
    ) -> Any:
        """
        Async HTTP GET returning parsed JSON.

        Non-200 responses are not raised: the result is None and, with
        return_status_code=True, the status is returned alongside it.
        429 responses wait for Retry-After and try again (bounded).
        Network errors and timeouts propagate on the first failure.

        Args:
            url: Full URL to request
            headers: Optional HTTP headers
            timeout: Request timeout in seconds (default: 60)
            return_status_code: Return (json | None, status) instead of json | None

        Returns:
            JSON response or None; a (json, status) tuple if return_status_code
        """
        request_timeout = aiohttp.ClientTimeout(total=timeout)
        session = self._get_session()
        rate_limit_retries = 0

        while True:
            async with session.get(url, headers=headers, timeout=request_timeout) as response:
                status = response.status

                if status == 429 and rate_limit_retries < self._max_rate_limit_retries:
                    rate_limit_retries += 1
                    retry_after_header = response.headers.get("Retry-After")
                    try:
                        retry_after = float(retry_after_header)
                    except (TypeError, ValueError):
                        retry_after = self._default_retry_after
                    wait_time = retry_after + random.uniform(0.1, 0.5)
                    logger.warning(
                        f"Rate limit hit for {url} (retry {rate_limit_retries}/"
                        f"{self._max_rate_limit_retries}). Waiting {wait_time:.2f}s"
                    )
                    await self._drain(response)
                    await asyncio.sleep(wait_time)
                    continue

                if status != 200:
                    # 404s are expected (resource doesn't exist)
                    if status == 404:
                        logger.debug(f"API returned status {status} for {url} (resource not found)")
                    else:
                        logger.warning(f"API returned status {status} for {url}")
                    await self._drain(response)
                    return (None, status) if return_status_code else None

                clean_result = await response.json()

            return (clean_result, status) if return_status_code else clean_result

    async def _core_async_download(
        self, url: str, headers: dict[str, Any] | None = None, timeout: int = 600
    ) -> tuple[bytes | None, int]:
        """Download a raw body. Returns (bytes, 200) or (None, status)."""
        request_timeout = aiohttp.ClientTimeout(total=timeout)
        session = self._get_session()
        async with session.get(url, headers=headers, timeout=request_timeout) as response:
            if response.status != 200:
                await self._drain(response)
                return None, response.status
            return await response.read(), response.status
