"""Pytest configuration and fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    """Capture DEBUG records from the feed so tests can assert on them."""
    caplog.set_level(logging.DEBUG, logger="stockfeed")
    yield
