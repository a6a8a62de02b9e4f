"""
TMDB Auth Service - Bearer token handling for the TMDB API.
"""

import os

from api.tmdb.exceptions import MissingCredentialError
from utils.get_logger import get_logger

logger = get_logger(__name__)

TOKEN_ENV_VAR = "TMDB_ACCESS_TOKEN"
# Older deployments exported the read token under this name
LEGACY_TOKEN_ENV_VAR = "TMDB_READ_TOKEN"


class Auth:
    """
    Base TMDB service with authentication utilities.
    """

    _tmdb_access_token: str | None = None
    base_url: str | None = None
    export_base_url: str | None = None

    def __init__(self, access_token: str | None = None):
        self.base_url = "https://api.themoviedb.org/3"
        self.export_base_url = "https://files.tmdb.org/p/exports"
        self._tmdb_access_token = access_token

    @property
    def tmdb_access_token(self) -> str | None:
        """Lazy-load the TMDB access token from the environment."""
        if self._tmdb_access_token is None:
            self._tmdb_access_token = os.getenv(TOKEN_ENV_VAR) or os.getenv(LEGACY_TOKEN_ENV_VAR)
            if self._tmdb_access_token:
                logger.debug("Loaded TMDB access token via env var")
        return self._tmdb_access_token

    def require_token(self) -> str:
        """Return the token or raise before any request is made."""
        token = self.tmdb_access_token
        if not token:
            raise MissingCredentialError(f"{TOKEN_ENV_VAR} environment variable is required")
        return token

    def auth_headers(self) -> dict[str, str]:
        """Return the authorization headers for TMDB API requests."""
        return {
            "Authorization": f"Bearer {self.require_token()}",
            "Content-Type": "application/json",
        }
