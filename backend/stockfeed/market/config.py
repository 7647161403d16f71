"""Startup configuration for the market feed."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .seed_instruments import DEFAULT_HISTORY_CAPACITY
from .simulator import RandomWalkSimulator


@dataclass(frozen=True, slots=True)
class FeedSettings:
    """Feed parameters, fixed for the lifetime of the process."""

    simulation_interval: float = 2.0  # seconds between price moves
    broadcast_interval: float = 1.0  # seconds between client pushes
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    max_move: float = RandomWalkSimulator.DEFAULT_MAX_MOVE
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.simulation_interval <= 0:
            raise ValueError("simulation_interval must be positive")
        if self.broadcast_interval <= 0:
            raise ValueError("broadcast_interval must be positive")
        if self.history_capacity < 1:
            raise ValueError("history_capacity must be at least 1")
        if not 0 < self.max_move < 1:
            raise ValueError("max_move must be between 0 and 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FeedSettings:
        """Build settings from STOCKFEED_* environment variables.

        Unset or blank variables fall back to the defaults. Malformed values
        raise ValueError.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def read(name: str, convert, default):
            raw = env.get(name, "").strip()
            if not raw:
                return default
            try:
                return convert(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from None

        return cls(
            simulation_interval=read(
                "STOCKFEED_SIMULATION_INTERVAL", float, defaults.simulation_interval
            ),
            broadcast_interval=read("STOCKFEED_BROADCAST_INTERVAL", float, defaults.broadcast_interval),
            history_capacity=read("STOCKFEED_HISTORY_CAPACITY", int, defaults.history_capacity),
            max_move=read("STOCKFEED_MAX_MOVE", float, defaults.max_move),
            seed=read("STOCKFEED_SEED", int, defaults.seed),
        )
