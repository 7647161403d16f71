"""Per-connection subscription registry."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

from .catalog import InstrumentCatalog
from .models import ConnectionStats
from .protocol import normalize_symbols

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Maps each live connection id to its set of subscribed symbols.

    Writers: ConnectionHub (connect, disconnect, subscribe, unsubscribe).
    Readers: BroadcastEngine (once per tick), AggregationService.

    Subscription sets are kept as insertion-ordered dicts so confirmations
    list symbols in the order they were subscribed. Only symbols listed in
    the catalog are ever stored.
    """

    def __init__(self, catalog: InstrumentCatalog) -> None:
        self._catalog = catalog
        self._subscriptions: dict[str, dict[str, None]] = {}
        self._lock = Lock()

    def on_connect(self, connection_id: str) -> None:
        """Create an empty subscription set. No-op if the id is already registered."""
        with self._lock:
            self._subscriptions.setdefault(connection_id, {})

    def on_disconnect(self, connection_id: str) -> bool:
        """Discard the connection's subscription set.

        Returns False (and does nothing) for an unknown id, which happens when
        the transport reports the same disconnect twice.
        """
        with self._lock:
            return self._subscriptions.pop(connection_id, None) is not None

    def subscribe(self, connection_id: str, symbols: Any) -> tuple[str, ...]:
        """Add catalog symbols to the connection's set. Returns the resulting set.

        Accepts one symbol or a sequence. Unlisted symbols are ignored and
        re-subscribing is a no-op. An unknown connection yields ().
        """
        requested = normalize_symbols(symbols)
        listed = [s for s in requested if s in self._catalog]
        if len(listed) != len(requested):
            logger.debug(
                "Connection %s: ignoring unknown symbols %s",
                connection_id,
                sorted(set(requested) - set(listed)),
            )

        with self._lock:
            subscribed = self._subscriptions.get(connection_id)
            if subscribed is None:
                return ()
            for symbol in listed:
                subscribed.setdefault(symbol, None)
            return tuple(subscribed)

    def unsubscribe(self, connection_id: str, symbols: Any) -> tuple[str, ...]:
        """Remove symbols from the connection's set. Returns the resulting set.

        Symbols that are not subscribed, or not listed at all, are ignored.
        """
        requested = normalize_symbols(symbols)
        with self._lock:
            subscribed = self._subscriptions.get(connection_id)
            if subscribed is None:
                return ()
            for symbol in requested:
                subscribed.pop(symbol, None)
            return tuple(subscribed)

    def get(self, connection_id: str) -> tuple[str, ...] | None:
        """The connection's current subscriptions, or None if it is not registered."""
        with self._lock:
            subscribed = self._subscriptions.get(connection_id)
            return tuple(subscribed) if subscribed is not None else None

    def snapshot(self) -> dict[str, tuple[str, ...]]:
        """Copy of every connection's subscriptions, safe to iterate without the lock."""
        with self._lock:
            return {cid: tuple(subs) for cid, subs in self._subscriptions.items()}

    def stats(self) -> ConnectionStats:
        """Connection and subscription totals, counted from current state."""
        with self._lock:
            return ConnectionStats(
                connected_count=len(self._subscriptions),
                total_subscriptions=sum(len(s) for s in self._subscriptions.values()),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._subscriptions
