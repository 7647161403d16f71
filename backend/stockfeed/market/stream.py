"""WebSocket and REST endpoints for the market feed."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from . import protocol
from .factory import MarketFeed

logger = logging.getLogger(__name__)


def create_stream_router(feed: MarketFeed) -> APIRouter:
    """Create the multiplexed WebSocket router bound to a feed.

    This factory pattern lets us inject the feed without globals.
    """
    router = APIRouter(tags=["streaming"])
    hub = feed.hub

    @router.websocket("/ws/market")
    async def market_socket(websocket: WebSocket) -> None:
        """One connection per client; subscriptions select what it receives.

        The client sends frames such as:

            {"type": "subscribe", "payload": ["AAPL", "MSFT"]}

        and receives initial-data once, then stock-update frames for its
        subscribed symbols on every broadcast tick.
        """
        await websocket.accept()
        client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
        connection_id = await hub.connect(websocket)
        logger.info("WebSocket client %s attached as %s", client, connection_id)

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    logger.debug("WebSocket client %s closed the connection", client)
                    break
                text = frame.get("text")
                if text is None:
                    await hub.send(connection_id, protocol.error("Binary frames are not supported"))
                    await hub.flush_stats()
                    continue
                try:
                    message = json.loads(text)
                except (TypeError, ValueError):
                    await hub.send(connection_id, protocol.error("Invalid JSON"))
                    await hub.flush_stats()
                    continue
                await hub.handle_message(connection_id, message)
        except WebSocketDisconnect:
            logger.debug("WebSocket client %s closed the connection", client)
        finally:
            await hub.disconnect(connection_id)

    return router


def create_market_router(feed: MarketFeed) -> APIRouter:
    """Create the read-only REST router for catalog, summary and stats."""
    router = APIRouter(prefix="/api/market", tags=["market"])

    @router.get("/instruments")
    async def list_instruments() -> dict:
        return {i.symbol: i.to_dict() for i in feed.catalog.list_all()}

    @router.get("/instruments/{symbol}/history")
    async def instrument_history(symbol: str) -> dict:
        symbol = symbol.upper().strip()
        if symbol not in feed.catalog:
            raise HTTPException(status_code=404, detail=f"Unknown symbol: {symbol}")
        return {"symbol": symbol, "prices": feed.catalog.history(symbol)}

    @router.get("/summary")
    async def summary() -> dict:
        return feed.aggregator.market_summary().to_dict()

    @router.get("/stats")
    async def stats() -> dict:
        return feed.aggregator.connection_stats().to_dict()

    return router
