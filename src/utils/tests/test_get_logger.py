"""
Tests for the cached console loggers.
"""

import logging

import pytest

from utils import get_logger as get_logger_module
from utils.get_logger import LocalTimeFormatter, get_logger, set_level

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_level():
    original = get_logger_module.Default_Level
    yield
    set_level(original)


def test_logger_is_cached():
    first = get_logger("tests.cached")
    assert get_logger("tests.cached") is first
    assert first.propagate is False
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0].formatter, LocalTimeFormatter)


def test_set_level_updates_existing_loggers():
    logger = get_logger("tests.level")
    assert logger.level == logging.INFO

    set_level(logging.DEBUG)

    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG
    assert get_logger("tests.level.new").level == logging.DEBUG


def test_formatter_layout():
    formatter = LocalTimeFormatter()
    record = logging.LogRecord("etl.detail_fetcher", logging.WARNING, __file__, 1, "slow batch", None, None)

    output = formatter.format(record)

    assert "=====> slow batch" in output
    assert "etl.detail_fetcher" in output
