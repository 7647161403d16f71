"""Assembly of the market feed components."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .aggregation import AggregationService
from .broadcast import BroadcastEngine
from .catalog import InstrumentCatalog
from .config import FeedSettings
from .hub import ConnectionHub
from .models import Instrument
from .registry import SubscriptionRegistry
from .seed_instruments import SEED_INSTRUMENTS
from .simulator import RandomWalkSimulator, SimulationEngine

logger = logging.getLogger(__name__)


@dataclass
class MarketFeed:
    """All process-wide feed state, owned in one place.

    Created at startup by create_market_feed(); start() launches the two
    periodic tasks and stop() cancels them at shutdown.
    """

    settings: FeedSettings
    catalog: InstrumentCatalog
    registry: SubscriptionRegistry
    aggregator: AggregationService
    hub: ConnectionHub
    simulation: SimulationEngine
    broadcaster: BroadcastEngine

    async def start(self) -> None:
        await self.simulation.start()
        await self.broadcaster.start()
        logger.info("Market feed started: tracking %d instruments", len(self.catalog))

    async def stop(self) -> None:
        await self.broadcaster.stop()
        await self.simulation.stop()
        logger.info("Market feed stopped")


def create_market_feed(
    settings: FeedSettings | None = None,
    instruments: Iterable[Instrument] = SEED_INSTRUMENTS,
) -> MarketFeed:
    """Wire up an unstarted MarketFeed. Caller must await feed.start()."""
    settings = settings or FeedSettings.from_env()

    catalog = InstrumentCatalog(instruments, history_capacity=settings.history_capacity)
    registry = SubscriptionRegistry(catalog)
    aggregator = AggregationService(catalog, registry)
    hub = ConnectionHub(catalog, registry, aggregator)
    simulation = SimulationEngine(
        catalog,
        interval=settings.simulation_interval,
        simulator=RandomWalkSimulator(max_move=settings.max_move, seed=settings.seed),
    )
    broadcaster = BroadcastEngine(catalog, registry, hub, interval=settings.broadcast_interval)

    return MarketFeed(
        settings=settings,
        catalog=catalog,
        registry=registry,
        aggregator=aggregator,
        hub=hub,
        simulation=simulation,
        broadcaster=broadcaster,
    )
