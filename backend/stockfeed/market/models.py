"""Data models for the market feed."""

from __future__ import annotations

from dataclasses import dataclass, field, replace


def compute_change_percent(price: float, previous_price: float) -> float:
    """Percentage change from previous_price, rounded to 2 decimals.

    A non-positive previous price has no meaningful percentage change and
    yields 0.0.
    """
    if previous_price <= 0:
        return 0.0
    return round((price - previous_price) / previous_price * 100, 2)


@dataclass(frozen=True, slots=True)
class Instrument:
    """Immutable quote for a single tradable symbol.

    The catalog swaps in a new instance on every price update, so a reader
    never sees a price without its matching change_percent.
    """

    symbol: str
    name: str
    price: float
    change_percent: float = 0.0

    def with_quote(self, price: float, change_percent: float) -> Instrument:
        """Copy of this instrument carrying a new quote."""
        return replace(self, price=round(price, 2), change_percent=round(change_percent, 2))

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat' relative to the previous tick."""
        if self.change_percent > 0:
            return "up"
        elif self.change_percent < 0:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        """Serialize for JSON / WebSocket transmission."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change_percent": self.change_percent,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class ConnectionStats:
    """Live connection count and the sum of all subscription set sizes."""

    connected_count: int
    total_subscriptions: int

    def to_dict(self) -> dict:
        return {
            "connected_count": self.connected_count,
            "total_subscriptions": self.total_subscriptions,
        }


@dataclass(frozen=True, slots=True)
class MarketSummary:
    """Gainers and losers computed from one catalog snapshot."""

    total_instruments: int
    gainers: list[Instrument] = field(default_factory=list)
    losers: list[Instrument] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_instruments": self.total_instruments,
            "gainers": [i.to_dict() for i in self.gainers],
            "losers": [i.to_dict() for i in self.losers],
        }
