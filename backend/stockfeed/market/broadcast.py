"""Filtered fan-out of quotes to subscribed connections."""

from __future__ import annotations

import logging

from . import protocol
from .catalog import InstrumentCatalog
from .hub import ConnectionHub
from .interface import PeriodicTask
from .registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


class BroadcastEngine(PeriodicTask):
    """Pushes each connection the quotes for its subscribed symbols only.

    Runs on its own interval, independent of the simulation engine. A tick may
    see several simulation ticks' worth of changes, or none; it always sends
    the current quote. Connections with no subscriptions get nothing.
    """

    name = "broadcast-engine"

    def __init__(
        self,
        catalog: InstrumentCatalog,
        registry: SubscriptionRegistry,
        hub: ConnectionHub,
        interval: float = 1.0,
    ) -> None:
        super().__init__(interval)
        self._catalog = catalog
        self._registry = registry
        self._hub = hub

    async def tick(self) -> int:
        """Deliver one round of deltas. Returns the number of messages delivered."""
        delivered = 0
        for connection_id, subscribed in self._registry.snapshot().items():
            if not subscribed:
                continue
            delta = self._catalog.select(subscribed)
            if not delta:
                continue
            # send() is a no-op for a connection that closed since the snapshot
            if await self._hub.send(connection_id, protocol.stock_update(delta)):
                delivered += 1
        # Peers dropped by failed sends above
        await self._hub.flush_stats()
        logger.debug("Broadcast tick: %d deltas delivered", delivered)
        return delivered
