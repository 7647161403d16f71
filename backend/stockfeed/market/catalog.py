"""Thread-safe instrument catalog with bounded price history."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from threading import Lock

from .models import Instrument
from .seed_instruments import DEFAULT_HISTORY_CAPACITY


class InstrumentCatalog:
    """Canonical quote state for a fixed set of instruments.

    Writer: SimulationEngine (via apply_price_update), one tick at a time.
    Readers: BroadcastEngine, AggregationService, SubscriptionRegistry, REST routes.

    Symbols are fixed at construction; declaration order is preserved by
    list_all() and symbols().
    """

    def __init__(
        self,
        instruments: Iterable[Instrument],
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if history_capacity < 1:
            raise ValueError(f"history_capacity must be >= 1, got {history_capacity}")
        self._instruments: dict[str, Instrument] = {}
        self._history: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._capacity = history_capacity

        for instrument in instruments:
            if instrument.symbol in self._instruments:
                raise ValueError(f"Duplicate symbol in catalog: {instrument.symbol}")
            self._instruments[instrument.symbol] = instrument
            self._history[instrument.symbol] = deque([instrument.price], maxlen=history_capacity)

    def get(self, symbol: str) -> Instrument | None:
        """Current quote for a symbol, or None if the symbol is not listed."""
        with self._lock:
            return self._instruments.get(symbol)

    def list_all(self) -> list[Instrument]:
        """Snapshot of every instrument in declaration order."""
        with self._lock:
            return list(self._instruments.values())

    def select(self, symbols: Iterable[str]) -> dict[str, Instrument]:
        """Snapshot of the requested symbols. Unlisted symbols are omitted."""
        with self._lock:
            return {s: self._instruments[s] for s in symbols if s in self._instruments}

    def apply_price_update(self, symbol: str, price: float, change_percent: float) -> Instrument:
        """Write a new quote and append it to the symbol's history.

        Only the simulation engine calls this. Raises KeyError for an
        unlisted symbol since the symbol set never changes.
        """
        with self._lock:
            updated = self._instruments[symbol].with_quote(price, change_percent)
            self._instruments[symbol] = updated
            self._history[symbol].append(updated.price)
            return updated

    def history(self, symbol: str) -> list[float]:
        """Past prices for a symbol, oldest first. Empty if not listed."""
        with self._lock:
            return list(self._history.get(symbol, ()))

    def symbols(self) -> list[str]:
        # The key set is immutable after __init__.
        return list(self._instruments)

    @property
    def history_capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._instruments
