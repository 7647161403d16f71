"""Tests for ConnectionHub."""

import pytest


@pytest.mark.asyncio
class TestConnectionHub:
    """Connection lifecycle, inbound dispatch and outbound delivery."""

    async def test_connect_sends_initial_data(self, hub, registry, make_connection):
        """Test that a new peer gets the whole catalog and is registered."""
        conn = make_connection()
        cid = await hub.connect(conn)
        assert cid in hub
        assert registry.get(cid) == ()

        assert conn.sent[0]["type"] == "initial-data"
        assert list(conn.sent[0]["data"]["instruments"]) == ["AAPL", "MSFT", "GOOGL"]

    async def test_connect_broadcasts_stats_to_everyone(self, hub, make_connection):
        """Test that every live peer hears about a new connection."""
        first = make_connection()
        await hub.connect(first)
        second = make_connection()
        await hub.connect(second)

        assert first.of_type("client-stats")[-1] == {"connected_count": 2, "total_subscriptions": 0}
        assert second.of_type("client-stats") == [{"connected_count": 2, "total_subscriptions": 0}]
        assert len(first.of_type("initial-data")) == 1

    async def test_connection_ids_are_unique(self, hub, make_connection):
        ids = {await hub.connect(make_connection()) for _ in range(10)}
        assert len(ids) == 10

    async def test_disconnect(self, hub, registry, make_connection):
        """Test that disconnect removes the peer and updates the others."""
        stay = make_connection()
        await hub.connect(stay)
        leave = make_connection()
        cid = await hub.connect(leave)
        await hub.handle_message(cid, {"type": "subscribe", "payload": ["AAPL", "MSFT"]})

        await hub.disconnect(cid)
        assert cid not in hub
        assert cid not in registry
        assert stay.of_type("client-stats")[-1] == {"connected_count": 1, "total_subscriptions": 0}

    async def test_double_disconnect_is_noop(self, hub, make_connection):
        """Test that a repeated disconnect neither raises nor re-broadcasts."""
        stay = make_connection()
        await hub.connect(stay)
        cid = await hub.connect(make_connection())
        await hub.disconnect(cid)
        stats_count = len(stay.of_type("client-stats"))
        await hub.disconnect(cid)
        await hub.disconnect("never-connected")
        assert len(stay.of_type("client-stats")) == stats_count

    async def test_subscribe_then_unsubscribe(self, hub, make_connection):
        """Subscribe AAPL and MSFT, unsubscribe AAPL: confirmation lists only MSFT."""
        conn = make_connection()
        cid = await hub.connect(conn)
        await hub.handle_message(cid, {"type": "subscribe", "payload": ["AAPL", "MSFT"]})
        await hub.handle_message(cid, {"type": "unsubscribe", "payload": "AAPL"})

        updates = conn.of_type("subscription-update")
        assert updates[0]["subscribed"] == ["AAPL", "MSFT"]
        assert updates[1]["subscribed"] == ["MSFT"]

    async def test_subscribe_unknown_symbol_is_not_an_error(self, hub, make_connection):
        conn = make_connection()
        cid = await hub.connect(conn)
        await hub.handle_message(cid, {"type": "subscribe", "payload": ["NOPE"]})
        assert conn.of_type("subscription-update")[0]["subscribed"] == []
        assert conn.of_type("error") == []

    async def test_request_summary(self, hub, catalog, make_connection):
        """Test that only the requester receives the summary."""
        asker = make_connection()
        other = make_connection()
        cid = await hub.connect(asker)
        await hub.connect(other)
        catalog.apply_price_update("MSFT", 196.00, -2.00)

        await hub.handle_message(cid, {"type": "request-summary"})
        summary = asker.of_type("market-summary")[0]
        assert summary["total_instruments"] == 3
        assert summary["gainers"] == []
        assert [l["symbol"] for l in summary["losers"]] == ["MSFT"]
        assert other.of_type("market-summary") == []

    async def test_request_history(self, hub, catalog, make_connection):
        conn = make_connection()
        cid = await hub.connect(conn)
        catalog.apply_price_update("AAPL", 101.00, 1.00)
        await hub.handle_message(cid, {"type": "request-history", "payload": ["AAPL", "NOPE"]})
        assert conn.of_type("price-history") == [{"AAPL": [100.00, 101.00]}]

    async def test_client_message_is_echoed(self, hub, make_connection):
        conn = make_connection()
        cid = await hub.connect(conn)
        await hub.handle_message(cid, {"type": "client-message", "payload": "hello"})
        response = conn.of_type("server-response")[0]
        assert response["message"] == "Message received"
        assert response["echo"] == "hello"

    async def test_unrecognized_message_gets_error(self, hub, make_connection):
        conn = make_connection()
        cid = await hub.connect(conn)
        await hub.handle_message(cid, {"type": "bogus"})
        await hub.handle_message(cid, "not even a dict")
        assert len(conn.of_type("error")) == 2

    async def test_send_to_unknown_connection(self, hub):
        """Test that sending to an unknown id is a quiet no-op."""
        assert await hub.send("ghost", {"type": "x", "data": {}}) is False

    async def test_failed_send_drops_connection(self, hub, registry, make_connection):
        """A peer whose send fails is removed; the others still get the broadcast."""
        good = make_connection()
        await hub.connect(good)
        bad = make_connection()
        bad_id = await hub.connect(bad)
        bad.fail = True

        delivered = await hub.broadcast({"type": "ping", "data": {}})
        assert delivered == 1
        assert bad_id not in hub
        assert bad_id not in registry
        assert {"type": "ping", "data": {}} in good.sent

    async def test_stats_stay_current_when_a_peer_dies_mid_broadcast(
        self, hub, registry, make_connection
    ):
        """A peer dropped while stats go out triggers a fresh round with the right count."""
        leaving = make_connection()
        dead = make_connection()
        watcher = make_connection()
        leaving_id = await hub.connect(leaving)
        await hub.connect(dead)
        await hub.connect(watcher)
        dead.fail = True

        await hub.disconnect(leaving_id)
        assert registry.stats().connected_count == 1
        assert watcher.of_type("client-stats")[-1] == {"connected_count": 1, "total_subscriptions": 0}

    async def test_stats_stay_current_when_new_peer_fails_on_connect(
        self, hub, registry, make_connection
    ):
        """A peer that cannot take its initial data is not counted in the stats others see."""
        watcher = make_connection()
        await hub.connect(watcher)

        broken_id = await hub.connect(make_connection(fail=True))
        assert broken_id not in hub
        assert registry.stats().connected_count == 1
        assert watcher.of_type("client-stats")[-1] == {"connected_count": 1, "total_subscriptions": 0}

    async def test_failed_reply_updates_stats_for_others(self, hub, make_connection):
        """A requester that dies before its reply is delivered is removed from everyone's stats."""
        watcher = make_connection()
        await hub.connect(watcher)
        asker = make_connection()
        asker_id = await hub.connect(asker)
        asker.fail = True

        await hub.handle_message(asker_id, {"type": "request-summary"})
        assert asker_id not in hub
        assert watcher.of_type("client-stats")[-1] == {"connected_count": 1, "total_subscriptions": 0}
