import pytest
from conftest import make_asset

from market_watch.db import AssetClass
from market_watch.services import BroadcastHub
from market_watch.services.broadcast import owner_topic


def test_publish_reaches_only_topic_subscribers():
    hub = BroadcastHub()
    crypto = hub.subscribe(["crypto"])
    both = hub.subscribe(["crypto", "equity"])
    equity = hub.subscribe(["equity"])

    delivered = hub.publish("crypto", {"type": "crypto_update"})

    assert delivered == 2
    assert crypto.pending() == 1
    assert both.pending() == 1
    assert equity.pending() == 0


def test_slow_subscriber_drops_oldest_without_blocking_others():
    hub = BroadcastHub(max_pending=2)
    slow = hub.subscribe(["crypto"])
    for i in range(5):
        hub.publish("crypto", {"seq": i})
    fast = hub.subscribe(["crypto"])
    hub.publish("crypto", {"seq": 5})

    assert slow.pending() == 2
    assert slow.dropped == 4
    assert fast.pending() == 1


@pytest.mark.asyncio
async def test_late_subscriber_gets_no_replay():
    hub = BroadcastHub()
    hub.publish("crypto", {"seq": 1})
    sub = hub.subscribe(["crypto"])
    hub.publish("crypto", {"seq": 2})

    assert (await sub.get()) == {"seq": 2}
    assert sub.pending() == 0


def test_unsubscribe_removes_empty_topics():
    hub = BroadcastHub()
    sub = hub.subscribe([owner_topic("u1")])
    assert hub.subscriber_count("user:u1") == 1

    hub.unsubscribe(sub)

    assert hub.subscriber_count("user:u1") == 0
    assert hub.publish("user:u1", {"type": "notification"}) == 0


@pytest.mark.asyncio
async def test_snapshot_event_is_truncated():
    hub = BroadcastHub(max_items=3)
    sub = hub.subscribe(["equity"])
    assets = [make_asset(f"S{i}", 1.0 + i, asset_class=AssetClass.EQUITY) for i in range(10)]

    hub.publish_snapshot(AssetClass.EQUITY, assets)
    event = await sub.get()

    assert event["type"] == "equity_update"
    assert len(event["data"]) == 3
