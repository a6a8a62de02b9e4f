"""
TMDB export enrichment errors.

Credential and export-download failures abort a run. DetailRequestError is
raised per id and absorbed by the detail fetcher.
"""


class TMDBExportError(Exception):
    """Base class for errors that abort an enrichment run."""


class MissingCredentialError(TMDBExportError):
    """No TMDB access token in the environment."""


class ExportDownloadError(TMDBExportError):
    """The daily id export could not be downloaded."""

    def __init__(self, url: str, status: int):
        self.url = url
        self.status = status
        super().__init__(f"Failed to download export {url}: HTTP {status}")


class DetailRequestError(Exception):
    """A detail lookup returned a non-success status other than 404."""

    def __init__(self, endpoint: str, status: int):
        self.endpoint = endpoint
        self.status = status
        super().__init__(f"TMDB API error: {status} for {endpoint}")
