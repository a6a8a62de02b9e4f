"""
Shared fixtures and utilities for TMDB export service tests.

Detail fixtures in fixtures/details/ are trimmed real TMDB responses.
HTTP is mocked at aiohttp.ClientSession.
"""

# Set environment to test mode FIRST, before any imports
import os

os.environ["ENVIRONMENT"] = "test"

import gzip
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_configure(config):
    """Pytest hook to configure test environment before any tests run."""
    os.environ["ENVIRONMENT"] = "test"


def load_fixture(filename: str) -> dict:
    """Load a fixture from JSON file.

    Args:
        filename: Path of the fixture file relative to fixtures/

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    fixture_path = FIXTURES_DIR / filename
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path) as f:
        return json.load(f)


def make_export_payload(records: list[dict[str, Any]], extra_lines: list[str] | None = None) -> bytes:
    """Gzip NDJSON payload shaped like a TMDB daily export."""
    lines = [json.dumps(record) for record in records]
    lines.extend(extra_lines or [])
    return gzip.compress(("\n".join(lines) + "\n").encode("utf-8"))


def mock_response(status: int = 200, json_data: Any = None, body: bytes = b"", headers=None):
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=json_data)
    response.read = AsyncMock(return_value=body)
    return response


def mock_session_for(*responses) -> MagicMock:
    """ClientSession double whose get() yields the given responses in order."""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    session.get.return_value.__aenter__.side_effect = list(responses)
    session.get.return_value.__aexit__.return_value = False
    return session


@pytest.fixture
def mock_tmdb_token(monkeypatch):
    """TMDB access token in the environment."""
    monkeypatch.setenv("TMDB_ACCESS_TOKEN", "test_tmdb_token_12345")
    return "test_tmdb_token_12345"


@pytest.fixture
def no_tmdb_token(monkeypatch):
    monkeypatch.delenv("TMDB_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("TMDB_READ_TOKEN", raising=False)
