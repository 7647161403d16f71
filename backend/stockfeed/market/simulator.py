"""Random-walk price simulator."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from .catalog import InstrumentCatalog
from .interface import PeriodicTask
from .models import Instrument, compute_change_percent

logger = logging.getLogger(__name__)


class RandomWalkSimulator:
    """Uniform random-walk simulator for instrument prices.

    Math:
        delta     ~ Uniform(-max_move, +max_move)
        new_price = round(price * (1 + delta), 2)
        change    = round((new_price - price) / price * 100, 2)

    With the default max_move of 0.02 each tick moves a price by at most 2%.
    Prices stay positive as long as max_move < 1.
    """

    DEFAULT_MAX_MOVE = 0.02

    def __init__(self, max_move: float = DEFAULT_MAX_MOVE, seed: int | None = None) -> None:
        if not 0 < max_move < 1:
            raise ValueError(f"max_move must be in (0, 1), got {max_move}")
        self._max_move = max_move
        self._rng = np.random.default_rng(seed)

    @property
    def max_move(self) -> float:
        return self._max_move

    def step(self, instruments: Sequence[Instrument]) -> dict[str, tuple[float, float]]:
        """Advance every instrument one tick. Returns {symbol: (price, change_percent)}."""
        n = len(instruments)
        if n == 0:
            return {}

        deltas = self._draw_moves(n)
        result: dict[str, tuple[float, float]] = {}
        for instrument, delta in zip(instruments, deltas):
            previous = instrument.price
            new_price = round(previous * (1 + float(delta)), 2)
            result[instrument.symbol] = (new_price, compute_change_percent(new_price, previous))
        return result

    def _draw_moves(self, n: int) -> np.ndarray:
        """n fractional moves in [-max_move, +max_move]."""
        return self._rng.uniform(-self._max_move, self._max_move, size=n)


class SimulationEngine(PeriodicTask):
    """Advances the catalog's prices on a fixed cadence.

    Each tick steps the simulator over a catalog snapshot and writes every
    new quote back through InstrumentCatalog.apply_price_update, which also
    appends to the symbol's price history.
    """

    name = "simulation-engine"

    def __init__(
        self,
        catalog: InstrumentCatalog,
        interval: float = 2.0,
        simulator: RandomWalkSimulator | None = None,
    ) -> None:
        super().__init__(interval)
        self._catalog = catalog
        self._sim = simulator or RandomWalkSimulator()

    async def tick(self) -> dict[str, tuple[float, float]]:
        return self.step_once()

    def step_once(self) -> dict[str, tuple[float, float]]:
        """Run one simulation step synchronously. Returns the applied quotes."""
        quotes = self._sim.step(self._catalog.list_all())
        for symbol, (price, change_percent) in quotes.items():
            self._catalog.apply_price_update(symbol, price, change_percent)
        logger.debug("Simulation tick: updated %d instruments", len(quotes))
        return quotes
