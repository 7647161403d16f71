"""Initial instrument catalog contents."""

from .models import Instrument

# Starting quotes for every tradable symbol, in display order.
# The set of symbols is fixed for the lifetime of the process.
SEED_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(symbol="AAPL", name="Apple Inc.", price=178.50),
    Instrument(symbol="GOOGL", name="Alphabet Inc.", price=142.30),
    Instrument(symbol="MSFT", name="Microsoft Corp.", price=378.91),
    Instrument(symbol="AMZN", name="Amazon.com Inc.", price=145.67),
    Instrument(symbol="TSLA", name="Tesla Inc.", price=242.84),
    Instrument(symbol="META", name="Meta Platforms", price=312.45),
    Instrument(symbol="NVDA", name="NVIDIA Corp.", price=495.22),
    Instrument(symbol="NFLX", name="Netflix Inc.", price=489.33),
)

DEFAULT_HISTORY_CAPACITY = 20
