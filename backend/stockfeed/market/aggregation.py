"""On-demand aggregates over the catalog and registry."""

from __future__ import annotations

from .catalog import InstrumentCatalog
from .models import ConnectionStats, MarketSummary
from .registry import SubscriptionRegistry


class AggregationService:
    """Computes connection stats and market summaries from current state.

    Nothing is cached: every call reads a fresh snapshot.
    """

    def __init__(self, catalog: InstrumentCatalog, registry: SubscriptionRegistry) -> None:
        self._catalog = catalog
        self._registry = registry

    def connection_stats(self) -> ConnectionStats:
        return self._registry.stats()

    def market_summary(self) -> MarketSummary:
        """Gainers (best first) and losers (worst first).

        Flat instruments are in neither list. sorted() is stable, so ties keep
        catalog order.
        """
        instruments = self._catalog.list_all()
        gainers = sorted(
            (i for i in instruments if i.change_percent > 0),
            key=lambda i: i.change_percent,
            reverse=True,
        )
        losers = sorted(
            (i for i in instruments if i.change_percent < 0),
            key=lambda i: i.change_percent,
        )
        return MarketSummary(total_instruments=len(instruments), gainers=gainers, losers=losers)
