"""Market data subsystem for stockfeed.

Public API:
    Instrument           - Immutable quote dataclass
    InstrumentCatalog    - Thread-safe quote store with bounded price history
    SubscriptionRegistry - Per-connection subscribed symbols
    AggregationService   - Connection stats and gainers/losers summary
    ConnectionHub        - Transport boundary: lifecycle, dispatch, sends
    SimulationEngine     - Periodic random-walk price updates
    BroadcastEngine      - Periodic per-connection filtered fan-out
    FeedSettings         - Startup configuration
    create_market_feed   - Factory that wires all of the above
    create_stream_router - FastAPI router factory for the WebSocket endpoint
    create_market_router - FastAPI router factory for the REST endpoints
"""

from .aggregation import AggregationService
from .broadcast import BroadcastEngine
from .catalog import InstrumentCatalog
from .config import FeedSettings
from .factory import MarketFeed, create_market_feed
from .hub import ConnectionHub
from .models import ConnectionStats, Instrument, MarketSummary
from .registry import SubscriptionRegistry
from .simulator import RandomWalkSimulator, SimulationEngine
from .stream import create_market_router, create_stream_router

__all__ = [
    "AggregationService",
    "BroadcastEngine",
    "ConnectionHub",
    "ConnectionStats",
    "FeedSettings",
    "Instrument",
    "InstrumentCatalog",
    "MarketFeed",
    "MarketSummary",
    "RandomWalkSimulator",
    "SimulationEngine",
    "SubscriptionRegistry",
    "create_market_feed",
    "create_market_router",
    "create_stream_router",
]
