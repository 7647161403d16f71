"""JSON wire protocol spoken over the market WebSocket.

Inbound frames look like ``{"type": "subscribe", "payload": ["AAPL", "MSFT"]}``.
Outbound frames look like ``{"type": "stock-update", "data": {...}}``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .models import ConnectionStats, Instrument, MarketSummary


class ClientMessageType(str, Enum):
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    REQUEST_SUMMARY = "request-summary"
    REQUEST_HISTORY = "request-history"
    CLIENT_MESSAGE = "client-message"


class ServerMessageType(str, Enum):
    INITIAL_DATA = "initial-data"
    STOCK_UPDATE = "stock-update"
    SUBSCRIPTION_UPDATE = "subscription-update"
    CLIENT_STATS = "client-stats"
    MARKET_SUMMARY = "market-summary"
    PRICE_HISTORY = "price-history"
    SERVER_RESPONSE = "server-response"
    ERROR = "error"


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def normalize_symbols(payload: Any) -> list[str]:
    """Coerce a "symbol or list of symbols" payload into a list of symbols.

    A bare string becomes a one-element list. Non-string entries, blanks and
    duplicates are dropped. Anything else normalizes to an empty list.
    """
    if isinstance(payload, str):
        candidates: Iterable[Any] = [payload]
    elif isinstance(payload, (list, tuple)):
        candidates = payload
    else:
        return []

    symbols: list[str] = []
    for item in candidates:
        if not isinstance(item, str):
            continue
        symbol = item.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return symbols


def parse_client_message(raw: Any) -> tuple[ClientMessageType, Any] | None:
    """Split an inbound frame into (type, payload). None if it is not a valid frame."""
    if not isinstance(raw, Mapping):
        return None
    try:
        message_type = ClientMessageType(raw.get("type"))
    except ValueError:
        return None
    return message_type, raw.get("payload")


def _envelope(message_type: ServerMessageType, data: Any) -> dict:
    return {"type": message_type.value, "data": data}


def initial_data(instruments: Iterable[Instrument]) -> dict:
    return _envelope(
        ServerMessageType.INITIAL_DATA,
        {
            "instruments": {i.symbol: i.to_dict() for i in instruments},
            "timestamp": utc_timestamp(),
        },
    )


def stock_update(delta: Mapping[str, Instrument]) -> dict:
    return _envelope(
        ServerMessageType.STOCK_UPDATE,
        {symbol: instrument.to_dict() for symbol, instrument in delta.items()},
    )


def subscription_update(subscribed: Iterable[str]) -> dict:
    return _envelope(
        ServerMessageType.SUBSCRIPTION_UPDATE,
        {"subscribed": list(subscribed), "timestamp": utc_timestamp()},
    )


def client_stats(stats: ConnectionStats) -> dict:
    return _envelope(ServerMessageType.CLIENT_STATS, stats.to_dict())


def market_summary(summary: MarketSummary) -> dict:
    return _envelope(ServerMessageType.MARKET_SUMMARY, summary.to_dict())


def price_history(histories: Mapping[str, list[float]]) -> dict:
    return _envelope(ServerMessageType.PRICE_HISTORY, dict(histories))


def server_response(echo: Any) -> dict:
    return _envelope(
        ServerMessageType.SERVER_RESPONSE,
        {"message": "Message received", "echo": echo, "timestamp": utc_timestamp()},
    )


def error(message: str) -> dict:
    return _envelope(ServerMessageType.ERROR, {"message": message})
