"""Connection hub: the boundary between the transport and the feed core."""

from __future__ import annotations

import logging
import uuid
from threading import Lock
from typing import Any, Protocol

from . import protocol
from .aggregation import AggregationService
from .catalog import InstrumentCatalog
from .models import ConnectionStats
from .protocol import ClientMessageType
from .registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can push a JSON message to one peer (e.g. a FastAPI WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionHub:
    """Tracks live connections and reacts to their lifecycle and messages.

    The hub owns the connection-id -> Connection map. Each connection's
    subscriptions live in the SubscriptionRegistry; aggregates come from the
    AggregationService. No lock is held while sending.
    """

    def __init__(
        self,
        catalog: InstrumentCatalog,
        registry: SubscriptionRegistry,
        aggregator: AggregationService,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._aggregator = aggregator
        self._connections: dict[str, Connection] = {}
        self._stats_stale = False  # A peer was dropped after the last stats broadcast
        self._lock = Lock()

    # --- Lifecycle ---

    async def connect(self, connection: Connection) -> str:
        """Register a new peer and return its connection id.

        The peer receives the full catalog; every peer receives fresh stats.
        """
        connection_id = uuid.uuid4().hex
        with self._lock:
            self._connections[connection_id] = connection
        self._registry.on_connect(connection_id)
        logger.info(
            "Client connected: %s | Total clients: %d", connection_id, len(self._registry)
        )

        await self.send(connection_id, protocol.initial_data(self._catalog.list_all()))
        await self.broadcast_stats()
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Forget a peer. Unknown or already-removed ids are ignored."""
        if not self._forget(connection_id):
            return
        logger.info(
            "Client disconnected: %s | Total clients: %d", connection_id, len(self._registry)
        )
        await self.broadcast_stats()

    def _forget(self, connection_id: str) -> bool:
        with self._lock:
            known = self._connections.pop(connection_id, None) is not None
        registered = self._registry.on_disconnect(connection_id)
        return known or registered

    # --- Inbound ---

    async def handle_message(self, connection_id: str, message: Any) -> None:
        """Dispatch one inbound frame from a connection."""
        parsed = protocol.parse_client_message(message)
        if parsed is None:
            logger.debug("Connection %s: unrecognized message %r", connection_id, message)
            await self.send(connection_id, protocol.error("Unrecognized message"))
            await self.flush_stats()
            return

        message_type, payload = parsed
        if message_type is ClientMessageType.SUBSCRIBE:
            subscribed = self._registry.subscribe(connection_id, payload)
            logger.debug("Connection %s subscribed: %s", connection_id, subscribed)
            await self.send(connection_id, protocol.subscription_update(subscribed))
        elif message_type is ClientMessageType.UNSUBSCRIBE:
            subscribed = self._registry.unsubscribe(connection_id, payload)
            logger.debug("Connection %s unsubscribed, remaining: %s", connection_id, subscribed)
            await self.send(connection_id, protocol.subscription_update(subscribed))
        elif message_type is ClientMessageType.REQUEST_SUMMARY:
            summary = self._aggregator.market_summary()
            await self.send(connection_id, protocol.market_summary(summary))
        elif message_type is ClientMessageType.REQUEST_HISTORY:
            histories = {
                symbol: self._catalog.history(symbol)
                for symbol in protocol.normalize_symbols(payload)
                if symbol in self._catalog
            }
            await self.send(connection_id, protocol.price_history(histories))
        elif message_type is ClientMessageType.CLIENT_MESSAGE:
            logger.info("Message from %s: %r", connection_id, payload)
            await self.send(connection_id, protocol.server_response(payload))
        await self.flush_stats()

    # --- Outbound ---

    async def send(self, connection_id: str, message: dict) -> bool:
        """Send to one peer. Returns False if the peer is gone or the send failed.

        A failed send drops the peer so later ticks skip it; the transport's
        own disconnect signal then finds nothing left to remove. Stats are not
        sent from here: the caller finishes its loop and then calls flush_stats().
        """
        with self._lock:
            connection = self._connections.get(connection_id)
        if connection is None:
            return False
        try:
            await connection.send_json(message)
        except Exception as e:
            logger.debug("Send to %s failed, dropping connection: %s", connection_id, e)
            if self._forget(connection_id):
                self._stats_stale = True
            return False
        return True

    async def broadcast(self, message: dict) -> int:
        """Send to every live peer. Returns how many sends succeeded."""
        delivered = await self._send_all(message)
        await self.flush_stats()
        return delivered

    async def broadcast_stats(self) -> ConnectionStats:
        """Send current connection stats to every live peer.

        If a send fails and drops a peer, the stats that went out are already
        out of date, so the round is repeated with fresh numbers. Each repeat
        removes at least one peer, so this ends.
        """
        while True:
            self._stats_stale = False
            stats = self._aggregator.connection_stats()
            await self._send_all(protocol.client_stats(stats))
            if not self._stats_stale:
                return stats

    async def flush_stats(self) -> None:
        """Re-broadcast stats if a peer was dropped since they were last sent."""
        if self._stats_stale:
            await self.broadcast_stats()

    async def _send_all(self, message: dict) -> int:
        delivered = 0
        for connection_id in self.connection_ids():
            if await self.send(connection_id, message):
                delivered += 1
        return delivered

    def connection_ids(self) -> list[str]:
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._connections
