"""stockfeed: simulated multiplexed market-data feed."""
