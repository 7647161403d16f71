"""Fixtures for market feed tests.

Provides a small three-instrument catalog and an in-memory FakeConnection
that records every message the hub sends to it.
"""

import pytest

from stockfeed.market.aggregation import AggregationService
from stockfeed.market.catalog import InstrumentCatalog
from stockfeed.market.hub import ConnectionHub
from stockfeed.market.models import Instrument
from stockfeed.market.registry import SubscriptionRegistry

TEST_INSTRUMENTS = (
    Instrument(symbol="AAPL", name="Apple Inc.", price=100.00),
    Instrument(symbol="MSFT", name="Microsoft Corp.", price=200.00),
    Instrument(symbol="GOOGL", name="Alphabet Inc.", price=150.00),
)


class FakeConnection:
    """Stands in for a WebSocket: records sent messages, optionally fails."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)

    def of_type(self, message_type: str) -> list:
        """Payloads of every sent message with the given type, oldest first."""
        return [m["data"] for m in self.sent if m["type"] == message_type]


@pytest.fixture
def catalog():
    return InstrumentCatalog(TEST_INSTRUMENTS)


@pytest.fixture
def registry(catalog):
    return SubscriptionRegistry(catalog)


@pytest.fixture
def aggregator(catalog, registry):
    return AggregationService(catalog, registry)


@pytest.fixture
def hub(catalog, registry, aggregator):
    return ConnectionHub(catalog, registry, aggregator)


@pytest.fixture
def make_connection():
    """Factory for FakeConnection instances."""
    return FakeConnection
