"""FastAPI application for the market feed.

Serving it (uvicorn, port binding) is left to the deployment:

    uvicorn stockfeed.main:create_app --factory
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .market import FeedSettings, create_market_feed, create_market_router, create_stream_router


def create_app(settings: FeedSettings | None = None) -> FastAPI:
    """Build the app. The feed's periodic tasks run for the app's lifespan."""
    feed = create_market_feed(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await feed.start()
        try:
            yield
        finally:
            await feed.stop()

    app = FastAPI(title="stockfeed", lifespan=lifespan)
    app.state.feed = feed
    app.include_router(create_stream_router(feed))
    app.include_router(create_market_router(feed))
    return app
